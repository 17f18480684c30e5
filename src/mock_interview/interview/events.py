"""
Event-driven communication between the session and its observers.
"""
import time
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional, Union
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    ANSWER_SUBMITTED = "answer_submitted"
    FEEDBACK_RECEIVED = "feedback_received"
    QUESTION_CHANGED = "question_changed"
    QUESTION_SKIPPED = "question_skipped"
    SESSION_COMPLETED = "session_completed"
    SESSION_EXITED = "session_exited"
    CODE_EXECUTED = "code_executed"
    NOTIFICATION = "notification"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class SessionEvent(ABC):
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(SessionEvent):
    """Event fired when the first question is presented."""
    def __init__(self, session_id: str, timestamp: float, question_count: int, round_type: str):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_count": question_count, "round_type": round_type}
        )


@dataclass
class AnswerSubmittedEvent(SessionEvent):
    """Event fired when an answer is sent for scoring."""
    def __init__(self, session_id: str, timestamp: float, index: int, question_id: Union[str, int]):
        super().__init__(
            event_type=EventType.ANSWER_SUBMITTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"index": index, "question_id": question_id}
        )


@dataclass
class FeedbackReceivedEvent(SessionEvent):
    """Event fired when a submitted answer comes back scored."""
    def __init__(self, session_id: str, timestamp: float, index: int, score: int, explanation: str):
        super().__init__(
            event_type=EventType.FEEDBACK_RECEIVED,
            session_id=session_id,
            timestamp=timestamp,
            data={"index": index, "score": score, "explanation": explanation}
        )


@dataclass
class QuestionChangedEvent(SessionEvent):
    """Event fired when the current question index moves."""
    def __init__(self, session_id: str, timestamp: float, previous_index: int, index: int, phase: str):
        super().__init__(
            event_type=EventType.QUESTION_CHANGED,
            session_id=session_id,
            timestamp=timestamp,
            data={"previous_index": previous_index, "index": index, "phase": phase}
        )


@dataclass
class QuestionSkippedEvent(SessionEvent):
    """Event fired when a question is passed over without a submit."""
    def __init__(self, session_id: str, timestamp: float, index: int):
        super().__init__(
            event_type=EventType.QUESTION_SKIPPED,
            session_id=session_id,
            timestamp=timestamp,
            data={"index": index}
        )


@dataclass
class SessionCompletedEvent(SessionEvent):
    """Event fired when the finalized bundle is handed off."""
    def __init__(self, session_id: str, timestamp: float, feedback_count: int,
                 elapsed_seconds: int):
        super().__init__(
            event_type=EventType.SESSION_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={"feedback_count": feedback_count, "elapsed_seconds": elapsed_seconds}
        )


@dataclass
class SessionExitedEvent(SessionEvent):
    """Event fired when the user leaves before completing."""
    def __init__(self, session_id: str, timestamp: float, index: int, elapsed_seconds: int):
        super().__init__(
            event_type=EventType.SESSION_EXITED,
            session_id=session_id,
            timestamp=timestamp,
            data={"index": index, "elapsed_seconds": elapsed_seconds}
        )


@dataclass
class CodeExecutedEvent(SessionEvent):
    """Event fired when a remote code run finishes, however it ended."""
    def __init__(self, session_id: str, timestamp: float, language: str, status: str,
                 wall_seconds: float):
        super().__init__(
            event_type=EventType.CODE_EXECUTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"language": language, "status": status, "wall_seconds": wall_seconds}
        )


@dataclass
class NotificationEvent(SessionEvent):
    """A message meant for the user."""
    def __init__(self, session_id: str, timestamp: float, title: str, description: str,
                 variant: str = "default"):
        super().__init__(
            event_type=EventType.NOTIFICATION,
            session_id=session_id,
            timestamp=timestamp,
            data={"title": title, "description": description, "variant": variant}
        )

    @property
    def title(self) -> str:
        return self.data["title"]

    @property
    def description(self) -> str:
        return self.data["description"]

    @property
    def is_error(self) -> bool:
        return self.data["variant"] == "destructive"


@dataclass
class ErrorOccurredEvent(SessionEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[SessionEvent], None]


class SessionEventBus:
    """Event bus for session communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from specific event type."""
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: SessionEvent) -> None:
        """
        Emit an event to all subscribers.

        Args:
            event: Event to emit
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: SessionEvent) -> None:
        """Log event details."""
        self.logger.info(f"Event: {event.event_type} | Session: {event.session_id} | Data: {event.data}")


class SessionMetrics:
    """Collects metrics from session events."""

    _COUNTERS = {
        EventType.SESSION_STARTED: "sessions_started",
        EventType.SESSION_COMPLETED: "sessions_completed",
        EventType.SESSION_EXITED: "sessions_exited",
        EventType.ANSWER_SUBMITTED: "answers_submitted",
        EventType.FEEDBACK_RECEIVED: "feedbacks_received",
        EventType.QUESTION_SKIPPED: "questions_skipped",
        EventType.CODE_EXECUTED: "code_runs",
        EventType.ERROR_OCCURRED: "errors_occurred",
    }

    def __init__(self):
        self.reset()

    def handle_event(self, event: SessionEvent) -> None:
        """Update metrics based on event."""
        name = self._COUNTERS.get(event.event_type)
        if name:
            self._counts[name] += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return dict(self._counts)

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self._counts = {name: 0 for name in self._COUNTERS.values()}


class Notifier:
    """Turns errors and status messages into notification events."""

    def __init__(self, event_bus: SessionEventBus, session_id: str = "unknown",
                 clock: Optional[Callable[[], float]] = None):
        self.event_bus = event_bus
        self.session_id = session_id
        self.clock = clock or time.time

    def info(self, title: str, description: str = "") -> None:
        self.event_bus.emit(NotificationEvent(self.session_id, self.clock(), title, description))

    def error(self, title: str, description: str = "") -> None:
        logger.warning(f"{title}: {description}")
        self.event_bus.emit(NotificationEvent(
            self.session_id, self.clock(), title, description, variant="destructive"
        ))

    def exception(self, title: str, error: Exception, component: str) -> None:
        """Report a failure to the user and record it as an error event."""
        self.event_bus.emit(ErrorOccurredEvent(
            self.session_id, self.clock(), type(error).__name__, str(error), component
        ))
        self.error(title, str(error) or "An error occurred")

"""
Session controller: drives one interview from the first question to completion.
"""
import time
import logging
import threading
from typing import Callable, Optional, Set

from ..config import TICK_SECONDS, AUTOSAVE_DEBOUNCE_SECONDS, DEFAULT_CODE_LANGUAGE
from ..errors import InterviewClientError, SessionStateError
from ..infrastructure.timers import Scheduler, ThreadingScheduler, TimerHandle
from .models import (
    Question, Feedback, Interview, InterviewBundle, Phase, RoundType, SessionState
)
from .events import (
    SessionEventBus, Notifier, SessionStartedEvent, AnswerSubmittedEvent,
    FeedbackReceivedEvent, QuestionChangedEvent, QuestionSkippedEvent,
    SessionCompletedEvent, SessionExitedEvent
)

logger = logging.getLogger("session")

# Sends (question, formatted answer) to the backend and returns its verdict
AnswerSubmitter = Callable[[Question, str], Feedback]
CompletionHandler = Callable[[InterviewBundle], None]


def format_elapsed(seconds: int) -> str:
    """Session clock as MM:SS."""
    mins, secs = divmod(int(seconds), 60)
    return f"{mins:02d}:{secs:02d}"


class SessionController:
    """
    Owns the questions, the per-question answer slots, the current index and
    the session clock.

    The phase for a question is derived from its slot: a question with
    feedback is being reviewed, one without is being answered. Revisiting a
    question never resets feedback it already has.
    """

    def __init__(self,
                 interview: Interview,
                 submitter: AnswerSubmitter,
                 event_bus: Optional[SessionEventBus] = None,
                 scheduler: Optional[Scheduler] = None,
                 on_complete: Optional[CompletionHandler] = None,
                 autosave_debounce: float = AUTOSAVE_DEBOUNCE_SECONDS,
                 tick_seconds: float = TICK_SECONDS,
                 code_language: str = DEFAULT_CODE_LANGUAGE,
                 clock: Callable[[], float] = time.time):
        if not interview.questions:
            raise ValueError("An interview needs at least one question")
        self.interview = interview
        self.submitter = submitter
        self.event_bus = event_bus or SessionEventBus()
        self.scheduler = scheduler or ThreadingScheduler()
        self.on_complete = on_complete
        self.autosave_debounce = autosave_debounce
        self.tick_seconds = tick_seconds
        self.clock = clock
        self.session_id = str(interview.id)
        self.notifier = Notifier(self.event_bus, self.session_id, clock)

        self.state = SessionState.for_questions(interview.questions)
        if self.round_type.is_coding:
            for slot in self.state.slots:
                slot.language = code_language
        self.autosaved = False
        self.bundle: Optional[InterviewBundle] = None

        self._in_flight: Set[int] = set()
        self._revising: Set[int] = set()
        self._ticker: Optional[TimerHandle] = None
        self._autosave_timer: Optional[TimerHandle] = None
        self._active = False
        # Engine and timer callbacks call in from other threads
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def round_type(self) -> RoundType:
        return self.interview.round_type

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def current_question(self) -> Question:
        return self.state.current_question

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def is_last_question(self) -> bool:
        return self.state.current_index == len(self.state.questions) - 1

    @property
    def elapsed_seconds(self) -> int:
        return self.state.elapsed_seconds

    @property
    def elapsed_display(self) -> str:
        return format_elapsed(self.state.elapsed_seconds)

    def is_submitting(self, index: Optional[int] = None) -> bool:
        return (self.state.current_index if index is None else index) in self._in_flight

    def _phase_for(self, index: int) -> Phase:
        if self.state.slots[index].feedback is not None and index not in self._revising:
            return Phase.REVIEWING
        return Phase.ANSWERING

    def _require_active(self) -> None:
        if self.state.phase == Phase.COMPLETE:
            raise SessionStateError("The interview is already complete")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Mount the session: start the clock and present the first question."""
        if self._active:
            return
        self._active = True
        self._ticker = self.scheduler.call_every(self.tick_seconds, self._tick)
        self.state.phase = self._phase_for(self.state.current_index)
        self.event_bus.emit(SessionStartedEvent(
            self.session_id, self.clock(), len(self.state.questions), self.round_type.value
        ))
        logger.info(f"Session {self.session_id} started with {len(self.state.questions)} questions")

    def _tick(self) -> None:
        with self._lock:
            if self._active:
                self.state.elapsed_seconds += 1

    def teardown(self) -> None:
        """Stop the clock and any pending debounce."""
        with self._lock:
            self._active = False
            if self._ticker is not None:
                self._ticker.cancel()
                self._ticker = None
            if self._autosave_timer is not None:
                self._autosave_timer.cancel()
                self._autosave_timer = None

    def exit(self) -> None:
        """Leave the interview without completing it."""
        with self._lock:
            if self._active:
                self.event_bus.emit(SessionExitedEvent(
                    self.session_id, self.clock(), self.state.current_index, self.state.elapsed_seconds
                ))
            self.teardown()
        logger.info(f"Session {self.session_id} exited at question {self.state.current_index + 1}")

    # ------------------------------------------------------------------
    # Answer editing
    # ------------------------------------------------------------------

    def update_answer(self, text: str, language: Optional[str] = None) -> None:
        """Record an edit to the current answer and restart the auto-save debounce."""
        with self._lock:
            slot = self.state.current_slot
            slot.raw_answer = text
            if language is not None:
                slot.language = language

            self.autosaved = False
            if self._autosave_timer is not None:
                self._autosave_timer.cancel()
                self._autosave_timer = None
            if text:
                self._autosave_timer = self.scheduler.call_later(self.autosave_debounce, self._mark_autosaved)

    def _mark_autosaved(self) -> None:
        with self._lock:
            self.autosaved = True
            self._autosave_timer = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def submit(self, answer: Optional[str] = None, language: Optional[str] = None) -> Optional[Feedback]:
        """
        Send the current answer for scoring.

        Args:
            answer: Answer text (or code); defaults to the text already in the slot
            language: Programming language, for coding rounds

        Returns:
            The new feedback, or None if the submit was rejected or failed.
            Failures are reported as notifications and leave the slot unchanged.
        """
        with self._lock:
            self._require_active()
            index = self.state.current_index
            if self._phase_for(index) != Phase.ANSWERING:
                raise SessionStateError(f"Question {index + 1} already has feedback; call revise() first")
            if index in self._in_flight:
                logger.info(f"Ignoring duplicate submit for question {index + 1}")
                return None

            slot = self.state.slots[index]
            text = slot.raw_answer if answer is None else answer
            lang = language or slot.language
            coding = self.round_type.is_coding

            if not text or not text.strip():
                if coding:
                    self.notifier.error("Code required", "Please write your solution before submitting.")
                else:
                    self.notifier.error("Answer required", "Please write your answer before submitting.")
                return None
            if coding and not lang:
                self.notifier.error("Language required", "Please choose a programming language.")
                return None

            question = self.state.questions[index]
            payload = f"Language: {lang}\n\n{text}" if coding else text
            self._in_flight.add(index)

        # The request runs unlocked; the in-flight guard covers this question meanwhile
        self.event_bus.emit(AnswerSubmittedEvent(self.session_id, self.clock(), index, question.id))
        try:
            feedback = self.submitter(question, payload)
        except InterviewClientError as e:
            logger.error(f"Submit failed for question {index + 1}: {e}")
            self.notifier.exception("Submission failed", e, "session")
            with self._lock:
                # Keep what the user typed so they can retry
                slot.raw_answer = text
                if language is not None:
                    slot.language = language
            return None
        finally:
            with self._lock:
                self._in_flight.discard(index)

        with self._lock:
            slot.raw_answer = text
            slot.language = lang if coding else slot.language
            slot.feedback = feedback
            self._revising.discard(index)
            if self.state.current_index == index and self.state.phase != Phase.COMPLETE:
                self.state.phase = Phase.REVIEWING

        self.event_bus.emit(FeedbackReceivedEvent(
            self.session_id, self.clock(), index, feedback.score, feedback.explanation
        ))
        if coding:
            self.notifier.info("Solution submitted!", "Your code has been evaluated.")
        else:
            self.notifier.info("Answer submitted!", f"Score: {feedback.score}/100")
        logger.info(f"Question {index + 1} scored {feedback.score}")
        return feedback

    def revise(self) -> None:
        """Reopen a reviewed question for a new answer; its feedback stays until replaced."""
        with self._lock:
            self._require_active()
            index = self.state.current_index
            if self._phase_for(index) != Phase.REVIEWING:
                raise SessionStateError(f"Question {index + 1} has no feedback to revise")
            self._revising.add(index)
            self.state.phase = Phase.ANSWERING

    def next(self) -> Optional[InterviewBundle]:
        """
        Move past a reviewed question.

        Returns:
            The finalized bundle when this completes the interview, else None
        """
        with self._lock:
            self._require_active()
            if self.state.phase != Phase.REVIEWING:
                raise SessionStateError("next() is only valid once the current answer has feedback")
            if self.is_last_question:
                return self._complete()
            self._move_to(self.state.current_index + 1)
            return None

    def next_from(self, index: int) -> bool:
        """
        Move past question `index` if it is still current and reviewed.

        Callers on different threads may race to leave the same question;
        exactly one of them moves the session.

        Returns:
            True if this call moved the session (or completed it)
        """
        with self._lock:
            if self.state.phase != Phase.REVIEWING or self.state.current_index != index:
                logger.debug(f"Not advancing from question {index + 1}; session moved on")
                return False
            self.next()
            return True

    def move_on_from(self, index: int) -> bool:
        """
        Leave question `index` if it is still current: next() when it has been
        reviewed, skip() when it is still being answered.

        Returns:
            True if this call moved the session (or completed it)
        """
        with self._lock:
            self._require_active()
            if self.state.current_index != index:
                return False
            if self.state.phase == Phase.REVIEWING:
                self.next()
            else:
                self.skip()
            return True

    def previous(self) -> None:
        """Go back one question."""
        with self._lock:
            self._require_active()
            if self.state.current_index > 0:
                self._move_to(self.state.current_index - 1)

    def jump_to(self, index: int) -> None:
        """Go to any question by zero-based index."""
        with self._lock:
            self._require_active()
            if not 0 <= index < len(self.state.questions):
                raise IndexError(f"No question at index {index}")
            self._move_to(index)

    def skip(self) -> Optional[InterviewBundle]:
        """
        Advance without submitting, leaving this question without feedback.

        Returns:
            The finalized bundle when skipping the last question, else None
        """
        with self._lock:
            self._require_active()
            if self.state.phase != Phase.ANSWERING:
                raise SessionStateError("skip() is only valid while answering")
            index = self.state.current_index
            self.event_bus.emit(QuestionSkippedEvent(self.session_id, self.clock(), index))
            logger.info(f"Question {index + 1} skipped")
            if self.is_last_question:
                return self._complete()
            self._move_to(index + 1)
            return None

    def complete(self) -> InterviewBundle:
        """Finish now with whatever feedback has been collected."""
        with self._lock:
            self._require_active()
            return self._complete()

    def _move_to(self, index: int) -> None:
        previous = self.state.current_index
        self._revising.discard(previous)
        if self._autosave_timer is not None:
            self._autosave_timer.cancel()
            self._autosave_timer = None
        self.autosaved = False
        self.state.current_index = index
        self.state.phase = self._phase_for(index)
        self.event_bus.emit(QuestionChangedEvent(
            self.session_id, self.clock(), previous, index, self.state.phase.value
        ))

    def _complete(self) -> InterviewBundle:
        coding = self.round_type.is_coding
        bundle = InterviewBundle(
            questions=list(self.state.questions),
            answers=[slot.formatted_answer(coding) for slot in self.state.slots],
            feedbacks=[slot.feedback for slot in self.state.slots if slot.feedback is not None],
            question_feedback=[slot.feedback for slot in self.state.slots],
            job_title=self.interview.job_title,
            elapsed_seconds=self.state.elapsed_seconds,
        )
        self.state.phase = Phase.COMPLETE
        self.bundle = bundle
        self.teardown()
        self.event_bus.emit(SessionCompletedEvent(
            self.session_id, self.clock(), len(bundle.feedbacks), bundle.elapsed_seconds
        ))
        logger.info(f"Session {self.session_id} complete with {len(bundle.feedbacks)} scored answers")
        if self.on_complete:
            self.on_complete(bundle)
        return bundle

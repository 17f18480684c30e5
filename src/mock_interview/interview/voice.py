"""
Voice interview flow and the voice chat side panel.
"""
import time
import logging
from typing import Callable, List, Optional, Union

from ..config import NEXT_QUESTION_DELAY
from ..errors import InterviewClientError
from ..infrastructure.api import RemoteGateway
from ..infrastructure.timers import Scheduler, TimerHandle
from .models import ChatMessage, Feedback, InterviewBundle, Phase, Question
from .schemas import parse_feedback, parse_chat_reply
from .events import Notifier
from .session import SessionController, AnswerSubmitter
from .speech_input import SpeechInputAdapter
from .speech_output import SpeechOutputAdapter

logger = logging.getLogger("voice")

CHAT_FALLBACK_REPLY = "Sorry, I could not process your message. Please try again."


def voice_submitter(gateway: RemoteGateway) -> AnswerSubmitter:
    """Submitter that scores answers through the voice interview endpoint."""
    def submit(question: Question, answer: str) -> Feedback:
        return parse_feedback(gateway.submit_voice_answer(question.id, question.text, answer))
    return submit


class VoiceInterviewFlow:
    """
    Spoken question/answer loop on top of a SessionController.

    Questions are read aloud, answers are captured by voice (or typed), and
    after a submit the feedback is read aloud before the session moves on and
    the next question is announced.
    """

    def __init__(self,
                 controller: SessionController,
                 speech_input: SpeechInputAdapter,
                 speech_output: SpeechOutputAdapter,
                 scheduler: Scheduler,
                 next_question_delay: float = NEXT_QUESTION_DELAY,
                 auto_speak: bool = True):
        self.controller = controller
        self.speech_input = speech_input
        self.speech_output = speech_output
        self.scheduler = scheduler
        self.next_question_delay = next_question_delay
        self.notifier: Notifier = controller.notifier
        self._announce_timer: Optional[TimerHandle] = None
        self.auto_speak = auto_speak

    @property
    def auto_speak(self) -> bool:
        return self.speech_output.enabled

    @auto_speak.setter
    def auto_speak(self, value: bool) -> None:
        self.speech_output.enabled = value
        if not value:
            self.speech_output.cancel()

    @property
    def bundle(self) -> Optional[InterviewBundle]:
        return self.controller.bundle

    def start(self) -> None:
        """Start the session, report missing speech capabilities, read question one."""
        if not self.speech_input.supported:
            self.notifier.info("Speech Recognition Not Supported",
                               "Voice answers are unavailable. Please type your answers.")
        if not self.speech_output.supported:
            self.notifier.info("Speech Output Unavailable", "Questions and feedback will only be shown as text.")
        self.controller.start()
        self.announce()

    def announce(self) -> None:
        """Read the current question aloud."""
        index = self.controller.current_index
        question = self.controller.current_question
        self.speech_output.speak(f"Question {index + 1}: {question.text}")

    def start_answer(self) -> bool:
        """Begin recording an answer; replaces whatever was recorded before."""
        self.speech_input.reset()
        return self.speech_input.start()

    def stop_answer(self) -> Optional[str]:
        """Stop recording and keep the transcript as the current answer."""
        text = self.speech_input.stop()
        if text:
            self.controller.update_answer(text)
        return text

    def type_answer(self, text: str) -> None:
        self.controller.update_answer(text)

    def submit(self) -> Optional[Feedback]:
        """
        Submit the current answer, then speak the feedback and move on.

        Returns:
            Feedback, or None if nothing was submitted
        """
        if self.controller.phase == Phase.REVIEWING:
            self.notifier.info("Already Submitted",
                               "This answer already has feedback. Skip to move on or wait for the next question.")
            return None
        if self.speech_input.capturing:
            self.stop_answer()
        answer = self.controller.state.current_slot.raw_answer.strip()
        if not answer:
            self.notifier.error("No Answer", "Please record or type your answer first.")
            return None

        self.speech_output.cancel()
        index = self.controller.current_index
        feedback = self.controller.submit(answer)
        if feedback is None:
            return None
        self.speech_output.speak(feedback.explanation, on_complete=lambda: self._advance_after(index))
        return feedback

    def _advance_after(self, index: int) -> None:
        if not self.controller.next_from(index):
            return
        self.speech_input.reset()
        if self.controller.phase != Phase.COMPLETE:
            self._schedule_announce()

    def _schedule_announce(self) -> None:
        if self._announce_timer is not None:
            self._announce_timer.cancel()
        self._announce_timer = self.scheduler.call_later(self.next_question_delay, self._announce_if_active)

    def _announce_if_active(self) -> None:
        self._announce_timer = None
        if self.controller.phase != Phase.COMPLETE:
            self.announce()

    def skip(self) -> Optional[InterviewBundle]:
        """Pass on the current question without an answer."""
        index = self.controller.current_index
        if self.speech_input.capturing:
            self.speech_input.stop()
        self.speech_input.reset()
        self.speech_output.cancel()
        # Feedback may still be read aloud; move on without waiting for it
        if self.controller.move_on_from(index) and self.controller.phase != Phase.COMPLETE:
            self.announce()
        return self.bundle

    def stop(self) -> None:
        """Tear down: stop capture, playback and pending announcements."""
        if self._announce_timer is not None:
            self._announce_timer.cancel()
            self._announce_timer = None
        if self.speech_input.capturing:
            self.speech_input.stop()
        self.speech_output.cancel()
        if self.controller.phase != Phase.COMPLETE:
            self.controller.exit()


class VoiceChatPanel:
    """Free-form chat with the assistant, typed or spoken."""

    def __init__(self,
                 gateway: RemoteGateway,
                 notifier: Notifier,
                 speech_input: SpeechInputAdapter,
                 speech_output: SpeechOutputAdapter,
                 interview_id: Optional[Union[str, int]] = None,
                 clock: Callable[[], float] = time.time):
        self.gateway = gateway
        self.notifier = notifier
        self.speech_input = speech_input
        self.speech_output = speech_output
        self.interview_id = interview_id
        self.clock = clock
        self.history: List[ChatMessage] = []
        self.processing = False

    def send_message(self, text: str) -> Optional[str]:
        """
        Send a message and speak the reply.

        Returns:
            The assistant's reply (or the fallback apology), None if nothing was sent
        """
        message = text.strip()
        if not message:
            self.notifier.error("Empty Message", "Please type or speak a message first.")
            return None
        if self.processing:
            return None

        self.history.append(ChatMessage(role="user", content=message, timestamp=self.clock()))
        self.processing = True
        try:
            reply = parse_chat_reply(self.gateway.chat(message, self.interview_id))
        except InterviewClientError as e:
            logger.error(f"Chat failed: {e}")
            self.notifier.exception("Chat Error", e, "voice_chat")
            reply = CHAT_FALLBACK_REPLY
        finally:
            self.processing = False

        self.history.append(ChatMessage(role="assistant", content=reply, timestamp=self.clock()))
        self.speech_output.speak(reply)
        return reply

    def start_recording(self) -> bool:
        self.speech_input.reset()
        started = self.speech_input.start()
        if started:
            self.notifier.info("Listening...", "Speak your message. Stop recording when done.")
        return started

    def stop_recording(self) -> Optional[str]:
        """Stop recording and send whatever was finalized."""
        text = self.speech_input.stop()
        if not text:
            return None
        return self.send_message(text)

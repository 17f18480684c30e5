"""
Speech input: turns recognition events into a running transcript.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from ..config import RECOGNITION_MAX_RESTARTS, TRANSIENT_RECOGNITION_ERRORS
from ..infrastructure.speech import RecognitionEngine, RecognitionEvent
from .events import Notifier
from .speech_output import SpeechOutputAdapter

logger = logging.getLogger("speech_input")


@dataclass
class TranscriptBuffer:
    """Durable (final) and provisional (interim) text for one capture."""
    final_text: str = ""
    interim_text: str = ""

    def append_final(self, segment: str) -> None:
        if not segment:
            return
        if self.final_text and not self.final_text.endswith(" ") and not segment.startswith(" "):
            self.final_text += " "
        self.final_text += segment


class SpeechInputAdapter:
    """
    Continuous capture across start/stop cycles.

    While capturing, an end of stream the user did not ask for restarts the
    recognizer, up to ``max_restarts`` times in a row without a result in
    between. Only final segments reach ``final_text``.
    """

    def __init__(self,
                 engine: Optional[RecognitionEngine],
                 notifier: Notifier,
                 speech_output: Optional[SpeechOutputAdapter] = None,
                 on_utterance: Optional[Callable[[str], None]] = None,
                 on_transcript: Optional[Callable[[TranscriptBuffer], None]] = None,
                 max_restarts: int = RECOGNITION_MAX_RESTARTS):
        self.engine = engine
        self.notifier = notifier
        self.speech_output = speech_output
        self.on_utterance = on_utterance
        self.on_transcript = on_transcript
        self.max_restarts = max_restarts

        self.transcript = TranscriptBuffer()
        self.capturing = False
        self.restart_count = 0
        self._lock = threading.RLock()

        if engine is not None:
            engine.bind(self._handle_result, self._handle_error, self._handle_end)

    @property
    def supported(self) -> bool:
        return self.engine is not None

    @property
    def final_text(self) -> str:
        return self.transcript.final_text

    @property
    def interim_text(self) -> str:
        return self.transcript.interim_text

    def reset(self) -> None:
        """Forget the accumulated transcript."""
        with self._lock:
            self.transcript = TranscriptBuffer()

    def start(self) -> bool:
        """
        Begin capturing. Any speech output playing is cancelled first.

        Returns:
            True if capture started
        """
        if not self.supported:
            self.notifier.error("Speech Recognition Not Supported",
                                "Voice input is unavailable here. Please type your answer.")
            return False

        if self.speech_output is not None:
            self.speech_output.cancel()

        with self._lock:
            if self.capturing:
                return True
            self.transcript.interim_text = ""
            self.restart_count = 0
            self.capturing = True
            try:
                self.engine.start()
            except Exception as e:
                self.capturing = False
                logger.error(f"Could not start recognition: {e}")
                self.notifier.error("Could not start listening", "Please try again.")
                return False

        logger.info("Capture started")
        return True

    def stop(self) -> Optional[str]:
        """
        Stop capturing and hand over the finished utterance.

        Returns:
            The trimmed final text, or None if nothing was recognized
        """
        with self._lock:
            # Clear the flag before stopping so the end callback does not restart
            self.capturing = False
            if self.engine is not None:
                self.engine.stop()
            self.transcript.interim_text = ""
            text = self.transcript.final_text.strip()

        logger.info(f"Capture stopped with {len(text)} characters")
        if not text:
            self.notifier.info("No speech detected", "Please try again or type instead.")
            return None
        if self.on_utterance:
            self.on_utterance(text)
        return text

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    def _handle_result(self, event: RecognitionEvent) -> None:
        with self._lock:
            if not self.capturing:
                return
            self.restart_count = 0
            for segment in event.final_segments:
                self.transcript.append_final(segment)
            self.transcript.interim_text = event.interim_text
            snapshot = TranscriptBuffer(self.transcript.final_text, self.transcript.interim_text)
        if self.on_transcript:
            self.on_transcript(snapshot)

    def _handle_error(self, error: str) -> None:
        if error in TRANSIENT_RECOGNITION_ERRORS:
            logger.debug(f"Ignoring transient recognition error: {error}")
            return
        with self._lock:
            was_capturing = self.capturing
            self.capturing = False
            self.transcript.interim_text = ""
        logger.warning(f"Recognition error: {error}")
        if was_capturing:
            self.engine.stop()
            self.notifier.error("Speech Recognition Error", "Please try again.")

    def _handle_end(self) -> None:
        with self._lock:
            if not self.capturing:
                return
            if self.restart_count >= self.max_restarts:
                self.capturing = False
                logger.warning(f"Recognition ended {self.restart_count} times without a result; giving up")
                self.notifier.error("Speech Recognition Stopped",
                                    "Listening ended repeatedly. Please start again.")
                return
            self.restart_count += 1
            logger.debug(f"Restarting recognition ({self.restart_count}/{self.max_restarts})")
            try:
                self.engine.start()
            except Exception as e:
                self.capturing = False
                logger.error(f"Could not restart recognition: {e}")
                self.notifier.error("Speech Recognition Error", "Listening stopped. Please try again.")

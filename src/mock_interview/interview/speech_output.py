"""
Speech output: reads arbitrarily long text aloud in sequential chunks.
"""
import logging
import textwrap
import threading
from typing import Callable, List, Optional

from ..config import TTS_CHUNK_SIZE, TTS_INTER_CHUNK_DELAY
from ..infrastructure.speech import SynthesisEngine
from ..infrastructure.timers import Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger("speech_output")


def split_text(text: str, chunk_size: int = TTS_CHUNK_SIZE) -> List[str]:
    """Split text into ordered chunks of at most chunk_size characters, on word boundaries where possible."""
    return textwrap.wrap(text, width=chunk_size, break_long_words=True, break_on_hyphens=False)


class SpeechOutputAdapter:
    """
    Plays one utterance queue at a time.

    Each speak() starts a new generation; callbacks from an older generation
    are ignored, so nothing queued before a cancel() can play afterwards.
    """

    def __init__(self,
                 engine: Optional[SynthesisEngine],
                 scheduler: Optional[Scheduler] = None,
                 chunk_size: int = TTS_CHUNK_SIZE,
                 inter_chunk_delay: float = TTS_INTER_CHUNK_DELAY,
                 enabled: bool = True):
        self.engine = engine
        self.scheduler = scheduler or ThreadingScheduler()
        self.chunk_size = chunk_size
        self.inter_chunk_delay = inter_chunk_delay
        self.enabled = enabled

        self.speaking = False
        self._generation = 0
        self._chunks: List[str] = []
        self._on_complete: Optional[Callable[[], None]] = None
        self._timer: Optional[TimerHandle] = None
        self._lock = threading.RLock()

    @property
    def supported(self) -> bool:
        return self.engine is not None

    def speak(self, text: str, on_complete: Optional[Callable[[], None]] = None) -> None:
        """
        Speak text, replacing anything already playing.

        Args:
            text: Text to read aloud
            on_complete: Called once after the last chunk finishes (or fails).
                Called right away when output is disabled or unavailable.
        """
        self.cancel()
        chunks = split_text(text, self.chunk_size)
        if not (self.supported and self.enabled and chunks):
            if on_complete:
                on_complete()
            return

        with self._lock:
            self._generation += 1
            generation = self._generation
            self._chunks = chunks
            self._on_complete = on_complete
            self.speaking = True
        logger.debug(f"Speaking {len(chunks)} chunk(s)")
        self._play(generation, 0)

    def cancel(self) -> None:
        """Stop the current chunk and drop the rest of the queue."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            was_speaking = self.speaking
            self.speaking = False
            self._chunks = []
            self._on_complete = None
        if was_speaking and self.engine is not None:
            self.engine.cancel()

    def _play(self, generation: int, index: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            chunk = self._chunks[index]
        logger.debug(f"Speaking chunk {index + 1}/{len(self._chunks)}")
        self.engine.speak(
            chunk,
            on_end=lambda: self._chunk_finished(generation, index),
            on_error=lambda error: self._chunk_failed(generation, index, error),
        )

    def _chunk_failed(self, generation: int, index: int, error: str) -> None:
        if generation == self._generation:
            logger.warning(f"Speech synthesis error on chunk {index + 1}: {error}")
        self._chunk_finished(generation, index)

    def _chunk_finished(self, generation: int, index: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            if index + 1 < len(self._chunks):
                self._timer = self.scheduler.call_later(
                    self.inter_chunk_delay, lambda: self._play(generation, index + 1)
                )
                return
            self.speaking = False
            on_complete = self._on_complete
            self._on_complete = None
            self._chunks = []
        if on_complete:
            on_complete()

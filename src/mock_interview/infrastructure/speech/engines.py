"""
Speech capability interfaces.

Recognition and synthesis engines are injected into the speech adapters so a
runtime without a microphone or speaker (or a test) can supply its own.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional


@dataclass
class RecognitionSegment:
    """One piece of recognized speech."""
    text: str
    is_final: bool


@dataclass
class RecognitionEvent:
    """Segments reported by the recognizer since its previous event, in order."""
    segments: List[RecognitionSegment] = field(default_factory=list)

    @property
    def final_segments(self) -> List[str]:
        return [s.text for s in self.segments if s.is_final]

    @property
    def interim_text(self) -> str:
        return "".join(s.text for s in self.segments if not s.is_final)


ResultHandler = Callable[[RecognitionEvent], None]
ErrorHandler = Callable[[str], None]
EndHandler = Callable[[], None]


class RecognitionEngine(ABC):
    """Continuous speech-to-text capture."""

    def __init__(self):
        self.on_result: Optional[ResultHandler] = None
        self.on_error: Optional[ErrorHandler] = None
        self.on_end: Optional[EndHandler] = None

    def bind(self, on_result: ResultHandler, on_error: ErrorHandler, on_end: EndHandler) -> None:
        """Attach the callbacks the engine reports through."""
        self.on_result = on_result
        self.on_error = on_error
        self.on_end = on_end

    @abstractmethod
    def start(self) -> None:
        """Begin a recognition session. May raise if one cannot be started."""

    @abstractmethod
    def stop(self) -> None:
        """End the current recognition session."""


class SynthesisEngine(ABC):
    """Text-to-speech playback of one utterance at a time."""

    @abstractmethod
    def speak(self, text: str, on_end: EndHandler, on_error: ErrorHandler) -> None:
        """Start speaking text; exactly one of the callbacks fires when playback stops."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the utterance currently playing."""


class SpeechCapabilityProvider(ABC):
    """Tells callers which speech capabilities exist and hands out engines."""

    @abstractmethod
    def recognition_supported(self) -> bool:
        ...

    @abstractmethod
    def synthesis_supported(self) -> bool:
        ...

    @abstractmethod
    def create_recognizer(self) -> Optional[RecognitionEngine]:
        """New recognizer, or None if unsupported."""

    @abstractmethod
    def create_synthesizer(self) -> Optional[SynthesisEngine]:
        """New synthesizer, or None if unsupported."""

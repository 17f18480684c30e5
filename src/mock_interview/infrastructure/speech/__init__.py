"""Speech recognition and synthesis capabilities."""

from .engines import (
    RecognitionEngine, SynthesisEngine, SpeechCapabilityProvider,
    RecognitionEvent, RecognitionSegment
)

__all__ = [
    "RecognitionEngine", "SynthesisEngine", "SpeechCapabilityProvider",
    "RecognitionEvent", "RecognitionSegment"
]

"""Infrastructure components for the mock interview client.

This module contains low-level technical components: the backend HTTP
gateway, timer scheduling and the speech engine interfaces.
"""

# Backend access
from .api import RemoteGateway, AuthSession, User

# Scheduling
from .timers import Scheduler, TimerHandle, ThreadingScheduler

# Speech capabilities
from .speech import (
    RecognitionEngine, SynthesisEngine, SpeechCapabilityProvider,
    RecognitionEvent, RecognitionSegment
)

__all__ = [
    # Backend
    "RemoteGateway", "AuthSession", "User",

    # Scheduling
    "Scheduler", "TimerHandle", "ThreadingScheduler",

    # Speech
    "RecognitionEngine", "SynthesisEngine", "SpeechCapabilityProvider",
    "RecognitionEvent", "RecognitionSegment"
]

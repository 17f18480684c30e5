"""Interview client components.

This module contains the session logic for running a mock interview:
the session controller, speech adapters, code panel, voice flow, results
and the services around them.
"""

# Terminal front end
from .orchestrator import InterviewOrchestrator

# Data models
from .models import (
    RoundType, Phase, Question, Feedback, AnswerSlot, Interview, SessionState,
    InterviewBundle, ExecutionResult, ChatMessage, InterviewSummary, ResumeAnalysis
)

# Session and its collaborators
from .session import SessionController, format_elapsed
from .speech_input import SpeechInputAdapter, TranscriptBuffer
from .speech_output import SpeechOutputAdapter, split_text
from .code_panel import CodeExecutionPanel, LANGUAGES, TEMPLATES, render_result
from .voice import VoiceInterviewFlow, VoiceChatPanel, voice_submitter
from .results import InterviewReport, QuestionResult, score_label, score_band

# Service classes
from .services import (
    AuthService, InterviewSetupService, ResumeService, HistoryService,
    HistorySummary, answer_submitter
)

# Event system
from .events import (
    SessionEventBus, EventLogger, SessionMetrics, Notifier,
    EventType, SessionEvent, SessionStartedEvent, AnswerSubmittedEvent,
    FeedbackReceivedEvent, QuestionChangedEvent, QuestionSkippedEvent,
    SessionCompletedEvent, SessionExitedEvent, CodeExecutedEvent,
    NotificationEvent, ErrorOccurredEvent
)

__all__ = [
    # Front end
    "InterviewOrchestrator",

    # Data models
    "RoundType", "Phase", "Question", "Feedback", "AnswerSlot", "Interview",
    "SessionState", "InterviewBundle", "ExecutionResult", "ChatMessage",
    "InterviewSummary", "ResumeAnalysis",

    # Session
    "SessionController", "format_elapsed",
    "SpeechInputAdapter", "TranscriptBuffer",
    "SpeechOutputAdapter", "split_text",
    "CodeExecutionPanel", "LANGUAGES", "TEMPLATES", "render_result",
    "VoiceInterviewFlow", "VoiceChatPanel", "voice_submitter",
    "InterviewReport", "QuestionResult", "score_label", "score_band",

    # Services
    "AuthService", "InterviewSetupService", "ResumeService", "HistoryService",
    "HistorySummary", "answer_submitter",

    # Events
    "SessionEventBus", "EventLogger", "SessionMetrics", "Notifier",
    "EventType", "SessionEvent", "SessionStartedEvent", "AnswerSubmittedEvent",
    "FeedbackReceivedEvent", "QuestionChangedEvent", "QuestionSkippedEvent",
    "SessionCompletedEvent", "SessionExitedEvent", "CodeExecutedEvent",
    "NotificationEvent", "ErrorOccurredEvent"
]

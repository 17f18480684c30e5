"""
Mock Interview: terminal client for an AI mock interview backend.

Practice behavioral, coding, DSA and system design rounds by typing or
speaking answers, get scored feedback, and review the results.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.session import SessionController
from .interview.models import Question, Feedback, InterviewBundle, RoundType

__all__ = [
    "InterviewOrchestrator", "SessionController",
    "Question", "Feedback", "InterviewBundle", "RoundType"
]

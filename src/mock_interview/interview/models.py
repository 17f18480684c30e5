"""
Data models for the interview session.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Union


class RoundType(str, Enum):
    """Interview category; selects the session flow and answer format."""
    BEHAVIORAL = "BEHAVIORAL"
    CODING = "CODING"
    DSA = "DSA"
    SYSTEM_DESIGN = "SYSTEM_DESIGN"

    @property
    def is_coding(self) -> bool:
        return self in (RoundType.CODING, RoundType.DSA)


class Phase(str, Enum):
    """Where the session is for the current question."""
    ANSWERING = "answering"
    REVIEWING = "reviewing"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Question:
    """A question as fetched from the backend."""
    id: Union[str, int]
    text: str


@dataclass(frozen=True)
class Feedback:
    """Score (0-100) and explanation for one submitted answer."""
    score: int
    explanation: str


@dataclass
class AnswerSlot:
    """Per-question answer record."""
    raw_answer: str = ""
    language: Optional[str] = None
    feedback: Optional[Feedback] = None

    def formatted_answer(self, coding: bool) -> str:
        """Answer as sent to the backend and reported in results."""
        if coding:
            return f"Language: {self.language}\n\n{self.raw_answer}"
        return self.raw_answer


@dataclass
class Interview:
    """An interview started on the backend."""
    id: Union[str, int]
    job_title: str
    questions: List[Question]
    round_type: RoundType = RoundType.BEHAVIORAL


@dataclass
class SessionState:
    """Everything the controller tracks for one interview."""
    questions: List[Question]
    slots: List[AnswerSlot]
    current_index: int = 0
    elapsed_seconds: int = 0
    phase: Phase = Phase.ANSWERING

    @classmethod
    def for_questions(cls, questions: List[Question]) -> 'SessionState':
        return cls(questions=list(questions), slots=[AnswerSlot() for _ in questions])

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def current_slot(self) -> AnswerSlot:
        return self.slots[self.current_index]

    @property
    def progress(self) -> float:
        """Percent of the way through, counting the current question."""
        return (self.current_index + 1) / len(self.questions) * 100


@dataclass
class InterviewBundle:
    """Finalized interview handed to the results view."""
    questions: List[Question]
    answers: List[str]
    feedbacks: List[Feedback]
    question_feedback: List[Optional[Feedback]] = field(default_factory=list)
    job_title: str = ""
    elapsed_seconds: int = 0


@dataclass
class ExecutionResult:
    """Outcome of one remote code execution."""
    success: bool
    status: str
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    compile_output: Optional[str] = None
    error: Optional[str] = None
    time: Optional[str] = None
    memory: Optional[int] = None
    wall_seconds: float = 0.0

    @property
    def timed_out(self) -> bool:
        return self.status == "Timeout"


@dataclass
class ChatMessage:
    """One line of the voice assistant chat."""
    role: str
    content: str
    timestamp: float = 0.0


@dataclass
class InterviewSummary:
    """A past interview as listed in history."""
    id: Union[str, int]
    job_title: str
    average_score: Optional[float] = None
    created_at: Optional[str] = None
    round_type: Optional[str] = None
    question_count: int = 0


@dataclass
class ResumeAnalysis:
    """Resume analyzer output."""
    overall_score: Optional[float] = None
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    summary: str = ""
    raw: dict = field(default_factory=dict)

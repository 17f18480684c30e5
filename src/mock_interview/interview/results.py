"""
Results report computed from a finished interview.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import EXCELLENT_SCORE, GOOD_SCORE
from .models import Feedback, InterviewBundle
from .schemas import round_half_up
from .session import format_elapsed


def score_label(score: int) -> str:
    if score >= 90:
        return "Excellent!"
    if score >= 80:
        return "Great Job!"
    if score >= 70:
        return "Good Work"
    if score >= 60:
        return "Keep Practicing"
    return "Needs Improvement"


def score_band(score: int) -> str:
    """Colour band: excellent (80+), good (60-79) or needs_improvement."""
    if score >= EXCELLENT_SCORE:
        return "excellent"
    if score >= GOOD_SCORE:
        return "good"
    return "needs_improvement"


@dataclass
class QuestionResult:
    number: int
    question: str
    answer: str
    feedback: Optional[Feedback]

    @property
    def band(self) -> Optional[str]:
        return score_band(self.feedback.score) if self.feedback else None


@dataclass
class InterviewReport:
    job_title: str
    overall_score: int
    label: str
    band: str
    excellent_count: int
    good_count: int
    needs_improvement_count: int
    elapsed_seconds: int = 0
    rows: List[QuestionResult] = field(default_factory=list)

    @property
    def elapsed_display(self) -> str:
        return format_elapsed(self.elapsed_seconds)

    @classmethod
    def from_bundle(cls, bundle: InterviewBundle) -> 'InterviewReport':
        """
        Summarize a bundle.

        The overall score is the mean of the collected feedback scores,
        rounded half up; a bundle with no feedback scores 0.
        """
        scores = [f.score for f in bundle.feedbacks]
        overall = round_half_up(sum(scores) / len(scores)) if scores else 0

        per_question = bundle.question_feedback or list(bundle.feedbacks)
        rows = []
        for i, question in enumerate(bundle.questions):
            rows.append(QuestionResult(
                number=i + 1,
                question=question.text,
                answer=bundle.answers[i] if i < len(bundle.answers) else "",
                feedback=per_question[i] if i < len(per_question) else None,
            ))

        return cls(
            job_title=bundle.job_title,
            overall_score=overall,
            label=score_label(overall),
            band=score_band(overall),
            excellent_count=sum(1 for s in scores if s >= EXCELLENT_SCORE),
            good_count=sum(1 for s in scores if GOOD_SCORE <= s < EXCELLENT_SCORE),
            needs_improvement_count=sum(1 for s in scores if s < GOOD_SCORE),
            elapsed_seconds=bundle.elapsed_seconds,
            rows=rows,
        )

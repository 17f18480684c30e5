"""
Wire schemas for backend responses and the parsers that turn them into models.
"""
import math
import logging
from typing import Optional, Any, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from ..errors import GatewayError
from .models import (
    Feedback, Question, Interview, RoundType, ExecutionResult,
    InterviewSummary, ResumeAnalysis
)

logger = logging.getLogger("schemas")


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive scores, as score displays expect."""
    return int(math.floor(value + 0.5))


def clamp_score(value: Optional[float]) -> int:
    """Score as an integer in 0..100."""
    if value is None:
        return 0
    return max(0, min(100, round_half_up(float(value))))


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AuthResponse(_WireModel):
    token: Optional[str] = None
    email: Optional[str] = None
    user_id: Optional[Union[str, int]] = Field(default=None, alias="userId")
    name: Optional[str] = None


class QuestionPayload(_WireModel):
    id: Union[str, int]
    question_text: str = Field(alias="questionText")


class InterviewPayload(_WireModel):
    id: Union[str, int]
    job_title: str = Field(default="", alias="jobTitle")
    questions: List[QuestionPayload] = Field(default_factory=list)
    round_type: Optional[str] = Field(default=None, alias="roundType")


class AnswerFeedbackPayload(_WireModel):
    score: Optional[float] = None
    ai_feedback: Optional[str] = Field(default=None, alias="aiFeedback")
    feedback_text: Optional[str] = Field(default=None, alias="feedbackText")
    success: Optional[bool] = None


class ExecutionPayload(_WireModel):
    success: bool = False
    status: Optional[str] = None
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    compile_output: Optional[str] = None
    error: Optional[str] = None
    time: Optional[Union[str, float]] = None
    memory: Optional[int] = None


class ChatPayload(_WireModel):
    reply: Optional[str] = None
    success: Optional[bool] = None
    error: Optional[str] = None


class HistoryItemPayload(_WireModel):
    id: Union[str, int]
    job_title: str = Field(default="", alias="jobTitle")
    average_score: Optional[float] = Field(default=None, alias="averageScore")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    round_type: Optional[str] = Field(default=None, alias="roundType")
    questions: List[Any] = Field(default_factory=list)


class ResumeAnalysisPayload(_WireModel):
    overall_score: Optional[float] = Field(default=None, alias="overallScore")
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    summary: str = ""


def _validate(model, data: Any, what: str):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        logger.warning("Malformed %s response: %s", what, e)
        raise GatewayError(f"Malformed {what} response from server")


def parse_auth(data: Any) -> AuthResponse:
    auth = _validate(AuthResponse, data, "auth")
    if not auth.token:
        raise GatewayError("No token received")
    return auth


def parse_interview(data: Any, round_type: Optional[RoundType] = None) -> Interview:
    payload = _validate(InterviewPayload, data, "interview")
    if not payload.questions:
        raise GatewayError("Interview has no questions")
    if round_type is None:
        round_type = RoundType(payload.round_type) if payload.round_type in RoundType.__members__ else RoundType.BEHAVIORAL
    return Interview(
        id=payload.id,
        job_title=payload.job_title,
        questions=[Question(id=q.id, text=q.question_text) for q in payload.questions],
        round_type=round_type,
    )


def parse_feedback(data: Any) -> Feedback:
    """
    Parse a scored answer from either the text or the voice endpoint.

    Raises:
        GatewayError: If the response carries no feedback text
    """
    payload = _validate(AnswerFeedbackPayload, data, "feedback")
    if payload.success is False:
        raise GatewayError("Answer could not be evaluated")
    explanation = payload.ai_feedback if payload.ai_feedback is not None else payload.feedback_text
    if explanation is None:
        raise GatewayError("Response contained no feedback")
    return Feedback(score=clamp_score(payload.score), explanation=explanation)


def parse_execution(data: Any, wall_seconds: float = 0.0) -> ExecutionResult:
    payload = _validate(ExecutionPayload, data, "execution")
    status = payload.status or ("Accepted" if payload.success else "Error")
    return ExecutionResult(
        success=payload.success,
        status=status,
        stdout=payload.stdout,
        stderr=payload.stderr,
        compile_output=payload.compile_output,
        error=payload.error,
        time=str(payload.time) if payload.time is not None else None,
        memory=payload.memory,
        wall_seconds=wall_seconds,
    )


def parse_chat_reply(data: Any) -> str:
    payload = _validate(ChatPayload, data, "chat")
    if payload.success is False or not payload.reply:
        raise GatewayError(payload.error or "Failed to get response")
    return payload.reply


def parse_history(data: Any) -> List[InterviewSummary]:
    items = data.get("interviews", []) if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise GatewayError("Malformed history response from server")
    summaries = []
    for item in items:
        payload = _validate(HistoryItemPayload, item, "history")
        summaries.append(InterviewSummary(
            id=payload.id,
            job_title=payload.job_title,
            average_score=payload.average_score,
            created_at=payload.created_at,
            round_type=payload.round_type,
            question_count=len(payload.questions),
        ))
    return summaries


def parse_resume_analysis(data: Any) -> ResumeAnalysis:
    payload = _validate(ResumeAnalysisPayload, data, "resume analysis")
    return ResumeAnalysis(
        overall_score=payload.overall_score,
        strengths=payload.strengths,
        improvements=payload.improvements,
        keywords=payload.keywords,
        summary=payload.summary,
        raw=data if isinstance(data, dict) else {},
    )

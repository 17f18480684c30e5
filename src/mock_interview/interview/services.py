"""
Service classes for everything around the interview session itself.
"""
import os
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from ..config import MAX_RESUME_BYTES, RESUME_EXTENSIONS, MAX_JOB_DESCRIPTION_LENGTH, REPORTS_DIR
from ..errors import ValidationError
from ..infrastructure.api import RemoteGateway, AuthSession, User
from .models import Feedback, Interview, InterviewSummary, Question, ResumeAnalysis, RoundType
from .schemas import (
    parse_auth, parse_interview, parse_feedback, parse_history, parse_resume_analysis, round_half_up
)

logger = logging.getLogger("services")


class AuthService:
    """Signs users in and out, keeping the AuthSession up to date."""

    def __init__(self, gateway: RemoteGateway, session: AuthSession):
        self.gateway = gateway
        self.session = session

    def login(self, email: str, password: str) -> User:
        """
        Sign in and persist the session.

        Raises:
            ValidationError: If email or password is blank
            GatewayError: If the backend rejects the credentials
        """
        if not email.strip() or not password:
            raise ValidationError("Email and password are required.", title="Login failed")
        auth = parse_auth(self.gateway.login(email.strip(), password))
        user = User(
            id=str(auth.user_id) if auth.user_id is not None else "",
            email=auth.email or email.strip(),
            name=auth.name or email.strip().split("@")[0],
        )
        self._store(auth.token, user)
        return user

    def register(self, name: str, email: str, password: str) -> User:
        if not name.strip() or not email.strip() or not password:
            raise ValidationError("Name, email and password are required.", title="Registration failed")
        auth = parse_auth(self.gateway.register(name.strip(), email.strip(), password))
        user = User(
            id=str(auth.user_id) if auth.user_id is not None else "",
            email=auth.email or email.strip(),
            name=name.strip(),
        )
        self._store(auth.token, user)
        return user

    def logout(self) -> None:
        self.session.clear()
        logger.info("Logged out")

    def _store(self, token: str, user: User) -> None:
        self.session.set(token, user)
        self.session.save()
        logger.info(f"Signed in as {user.email}")


def answer_submitter(gateway: RemoteGateway) -> Callable[[Question, str], Feedback]:
    """Submitter that scores answers through the text/coding endpoint."""
    def submit(question: Question, answer: str) -> Feedback:
        return parse_feedback(gateway.submit_answer(question.id, answer))
    return submit


class InterviewSetupService:
    """Validates setup input and starts interviews."""

    def __init__(self, gateway: RemoteGateway):
        self.gateway = gateway

    @staticmethod
    def validate(job_title: str, round_type: Optional[Union[str, RoundType]],
                 job_description: str = "") -> RoundType:
        """
        Check setup input before anything is sent.

        Returns:
            The round type, normalized

        Raises:
            ValidationError: On a missing title or round, or an overlong description
        """
        if not job_title or not job_title.strip():
            raise ValidationError("Please enter the job title you want to practice for.",
                                  title="Job title required")
        if not round_type:
            raise ValidationError("Please select an interview round type.", title="Round type required")
        try:
            normalized = RoundType(round_type.upper() if isinstance(round_type, str) else round_type)
        except ValueError:
            raise ValidationError(
                f"Round type must be one of {', '.join(r.value for r in RoundType)}.",
                title="Round type required",
            )
        if len(job_description or "") > MAX_JOB_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Job description must be at most {MAX_JOB_DESCRIPTION_LENGTH} characters.",
                title="Job description too long",
            )
        return normalized

    def start(self, job_title: str, round_type: Union[str, RoundType], job_description: str = "") -> Interview:
        normalized = self.validate(job_title, round_type, job_description)
        data = self.gateway.start_interview(job_title.strip(), job_description or "", normalized.value)
        interview = parse_interview(data, round_type=normalized)
        logger.info(f"Started interview {interview.id} ({normalized.value}) with "
                    f"{len(interview.questions)} questions")
        return interview


class ResumeService:
    """Resume upload, listing and analysis."""

    def __init__(self, gateway: RemoteGateway):
        self.gateway = gateway

    @staticmethod
    def validate_file(path: str) -> None:
        """
        Raises:
            ValidationError: If the file is missing, not PDF/Word, or over 10MB
        """
        if not os.path.isfile(path):
            raise ValidationError(f"No such file: {path}", title="File not found")
        if os.path.splitext(path)[1].lower() not in RESUME_EXTENSIONS:
            raise ValidationError("Please upload a PDF or Word document.", title="Invalid file type")
        if os.path.getsize(path) > MAX_RESUME_BYTES:
            raise ValidationError("Please upload a file smaller than 10MB.", title="File too large")

    def upload(self, path: str) -> Any:
        self.validate_file(path)
        result = self.gateway.upload_resume(path)
        logger.info(f"Uploaded resume {os.path.basename(path)}")
        return result

    def list(self) -> List[Dict[str, Any]]:
        return self.gateway.list_resumes()

    def analyze(self, path: str, job_description: Optional[str] = None) -> ResumeAnalysis:
        self.validate_file(path)
        analysis = parse_resume_analysis(self.gateway.analyze_resume(path, job_description))
        logger.info(f"Resume analysis score: {analysis.overall_score}")
        return analysis


@dataclass
class HistorySummary:
    """Dashboard figures over past interviews."""
    total_interviews: int
    average_score: int


class HistoryService:
    """Past interviews, dashboard summary and PDF reports."""

    def __init__(self, gateway: RemoteGateway, reports_dir: str = REPORTS_DIR):
        self.gateway = gateway
        self.reports_dir = reports_dir

    def list(self) -> List[InterviewSummary]:
        return parse_history(self.gateway.interview_history())

    @staticmethod
    def summarize(interviews: List[InterviewSummary]) -> HistorySummary:
        """Missing scores count as 0, as on the dashboard."""
        if not interviews:
            return HistorySummary(total_interviews=0, average_score=0)
        total = sum(i.average_score or 0 for i in interviews)
        return HistorySummary(total_interviews=len(interviews),
                              average_score=round_half_up(total / len(interviews)))

    def download_report(self, interview_id: Union[str, int], directory: Optional[str] = None) -> str:
        """
        Save an interview's PDF report.

        Returns:
            Path of the written file
        """
        filename, content = self.gateway.download_report(interview_id)
        target_dir = directory or self.reports_dir
        os.makedirs(target_dir, exist_ok=True)
        path = os.path.join(target_dir, os.path.basename(filename))
        with open(path, 'wb') as f:
            f.write(content)
        logger.info(f"Saved report for interview {interview_id} to {path}")
        return path

"""
Tests for auth, setup, resume and history services.
"""
import json
import os

import pytest

from mock_interview.config import MAX_RESUME_BYTES
from mock_interview.errors import GatewayError, ValidationError
from mock_interview.infrastructure.api import AuthSession
from mock_interview.interview.models import InterviewSummary, RoundType
from mock_interview.interview.services import (
    AuthService, HistoryService, InterviewSetupService, ResumeService
)
from mock_interview.interview.testing import MockGateway


@pytest.fixture
def gateway():
    return MockGateway()


class TestAuthService:

    def test_login_stores_token_and_user(self, gateway, tmp_path):
        path = tmp_path / "auth.json"
        session = AuthSession(str(path))
        service = AuthService(gateway, session)

        user = service.login(" dev@example.com ", "hunter2")

        assert user.id == "42"
        assert user.name == "dev"
        assert session.token == "test-token"
        stored = json.loads(path.read_text())
        assert stored["token"] == "test-token"
        assert stored["user"]["email"] == "dev@example.com"
        assert gateway.calls_to("login") == [("dev@example.com",)]

    def test_register_keeps_given_name(self, gateway):
        service = AuthService(gateway, AuthSession())
        user = service.register("Ada Lovelace", "ada@example.com", "pw")
        assert (user.id, user.name) == ("43", "Ada Lovelace")

    def test_blank_credentials_never_sent(self, gateway):
        service = AuthService(gateway, AuthSession())
        with pytest.raises(ValidationError):
            service.login("", "pw")
        with pytest.raises(ValidationError):
            service.register("Ada", "ada@example.com", "")
        assert gateway.calls == []

    def test_rejected_login_leaves_session_empty(self, gateway):
        gateway.fail_with["login"] = GatewayError("Invalid credentials", status_code=401)
        session = AuthSession()
        with pytest.raises(GatewayError):
            AuthService(gateway, session).login("dev@example.com", "wrong")
        assert session.is_authenticated is False

    def test_logout_clears_session_file(self, gateway, tmp_path):
        path = tmp_path / "auth.json"
        session = AuthSession(str(path))
        service = AuthService(gateway, session)
        service.login("dev@example.com", "pw")

        service.logout()

        assert session.token is None
        assert session.user is None
        assert not path.exists()


class TestInterviewSetupService:

    def test_start_normalizes_round(self, gateway):
        interview = InterviewSetupService(gateway).start("Backend Engineer", "coding", "Go services")

        assert interview.round_type == RoundType.CODING
        assert len(interview.questions) == 3
        assert gateway.calls_to("start_interview") == [("Backend Engineer", "Go services", "CODING")]

    @pytest.mark.parametrize("title,round_type,description,error_title", [
        ("", "BEHAVIORAL", "", "Job title required"),
        ("   ", "BEHAVIORAL", "", "Job title required"),
        ("SRE", "", "", "Round type required"),
        ("SRE", "PAIRING", "", "Round type required"),
        ("SRE", "DSA", "x" * 2001, "Job description too long"),
    ])
    def test_invalid_setup_never_reaches_backend(self, gateway, title, round_type, description, error_title):
        with pytest.raises(ValidationError) as info:
            InterviewSetupService(gateway).start(title, round_type, description)

        assert info.value.title == error_title
        assert gateway.calls == []

    def test_description_at_limit_is_accepted(self):
        assert InterviewSetupService.validate("SRE", RoundType.DSA, "x" * 2000) == RoundType.DSA


class TestResumeService:

    def test_upload_valid_file(self, gateway, tmp_path):
        resume = tmp_path / "resume.PDF"
        resume.write_bytes(b"%PDF-1.4")

        ResumeService(gateway).upload(str(resume))

        assert gateway.calls_to("upload_resume") == [(str(resume),)]

    def test_wrong_extension(self, gateway, tmp_path):
        resume = tmp_path / "resume.txt"
        resume.write_text("plain text")

        with pytest.raises(ValidationError) as info:
            ResumeService(gateway).upload(str(resume))
        assert info.value.title == "Invalid file type"
        assert gateway.calls == []

    def test_oversized_file(self, gateway, tmp_path):
        resume = tmp_path / "resume.docx"
        with open(resume, "wb") as f:
            f.truncate(MAX_RESUME_BYTES + 1)

        with pytest.raises(ValidationError) as info:
            ResumeService(gateway).analyze(str(resume))
        assert info.value.title == "File too large"

    def test_missing_file(self, gateway, tmp_path):
        with pytest.raises(ValidationError):
            ResumeService(gateway).upload(str(tmp_path / "nope.pdf"))

    def test_analyze(self, gateway, tmp_path):
        resume = tmp_path / "resume.doc"
        resume.write_bytes(b"doc")

        analysis = ResumeService(gateway).analyze(str(resume), "Platform role")

        assert analysis.overall_score == 81
        assert analysis.improvements == ["Add metrics"]
        assert gateway.calls_to("analyze_resume") == [(str(resume), "Platform role")]


class TestHistoryService:

    def test_list_parses_history(self):
        gateway = MockGateway(history={"interviews": [
            {"id": 1, "jobTitle": "SRE", "averageScore": 80},
            {"id": 2, "jobTitle": "QA"},
        ]})
        interviews = HistoryService(gateway).list()
        assert [i.id for i in interviews] == [1, 2]
        assert interviews[1].average_score is None

    def test_summary_counts_missing_scores_as_zero(self):
        summary = HistoryService.summarize([
            InterviewSummary(id=1, job_title="A", average_score=80),
            InterviewSummary(id=2, job_title="B", average_score=75),
            InterviewSummary(id=3, job_title="C", average_score=None),
        ])
        assert summary.total_interviews == 3
        assert summary.average_score == 52

    def test_empty_summary(self):
        summary = HistoryService.summarize([])
        assert (summary.total_interviews, summary.average_score) == (0, 0)

    def test_download_report_writes_file(self, gateway, tmp_path):
        service = HistoryService(gateway, reports_dir=str(tmp_path / "reports"))

        path = service.download_report(12)

        assert path == os.path.join(str(tmp_path / "reports"), "Interview_12.pdf")
        with open(path, "rb") as f:
            assert f.read() == b"%PDF-1.4 mock report"

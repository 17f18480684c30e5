"""
Testing infrastructure with mock services for the interview client.
"""
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..errors import GatewayError
from ..infrastructure.api import RemoteGateway, AuthSession
from ..infrastructure.speech import (
    RecognitionEngine, SynthesisEngine, SpeechCapabilityProvider,
    RecognitionEvent, RecognitionSegment
)
from ..infrastructure.timers import Scheduler, TimerHandle
from .models import Feedback, Interview, InterviewBundle, Question, RoundType


# =============================================================================
# Scheduling
# =============================================================================

class _ManualHandle(TimerHandle):

    def __init__(self, due: float, seq: int, callback: Callable[[], None],
                 interval: Optional[float] = None):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.interval = interval
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """Scheduler on a virtual clock; nothing fires until advance() is called."""

    def __init__(self):
        self.now = 0.0
        self._timers: List[_ManualHandle] = []
        self._seq = 0

    def _add(self, delay: float, callback: Callable[[], None], interval: Optional[float]) -> TimerHandle:
        self._seq += 1
        handle = _ManualHandle(self.now + max(0.0, delay), self._seq, callback, interval)
        self._timers.append(handle)
        return handle

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self._add(delay, callback, None)

    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._add(interval, callback, interval)

    @property
    def pending(self) -> int:
        """Number of live timers."""
        return sum(1 for h in self._timers if not h.cancelled)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = self.now + seconds
        while True:
            self._timers = [h for h in self._timers if not h.cancelled]
            due = [h for h in self._timers if h.due <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self.now = max(self.now, handle.due)
            if handle.interval is not None:
                handle.due += handle.interval
            else:
                self._timers.remove(handle)
            handle.callback()
        self.now = target


class FakeClock:
    """Settable clock for event timestamps and elapsed-time tracking."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def tick(self, seconds: float) -> None:
        self.value += seconds


# =============================================================================
# Speech
# =============================================================================

class FakeRecognitionEngine(RecognitionEngine):
    """Recognizer driven by the test: push results, errors and ends by hand."""

    def __init__(self, fail_on_start: int = 0, end_on_stop: bool = True):
        super().__init__()
        self.fail_on_start = fail_on_start
        self.end_on_stop = end_on_stop
        self.start_count = 0
        self.stop_count = 0
        self.running = False

    def start(self) -> None:
        self.start_count += 1
        if self.fail_on_start:
            self.fail_on_start -= 1
            raise RuntimeError("recognition failed to start")
        self.running = True

    def stop(self) -> None:
        self.stop_count += 1
        was_running = self.running
        self.running = False
        if was_running and self.end_on_stop and self.on_end:
            self.on_end()

    def emit(self, final: Union[str, List[str], None] = None, interim: Optional[str] = None) -> None:
        segments = []
        for text in ([final] if isinstance(final, str) else (final or [])):
            segments.append(RecognitionSegment(text=text, is_final=True))
        if interim is not None:
            segments.append(RecognitionSegment(text=interim, is_final=False))
        self.on_result(RecognitionEvent(segments))

    def emit_error(self, error: str) -> None:
        self.on_error(error)

    def emit_end(self) -> None:
        """End the stream as the platform would, unasked."""
        self.running = False
        self.on_end()


class FakeSynthesisEngine(SynthesisEngine):
    """Synthesizer that records what it was asked to say."""

    def __init__(self, auto_finish: bool = False):
        self.auto_finish = auto_finish
        self.spoken: List[str] = []
        self.cancel_count = 0
        self._current: Optional[Tuple[Callable[[], None], Callable[[str], None]]] = None

    @property
    def is_playing(self) -> bool:
        return self._current is not None

    def speak(self, text: str, on_end, on_error) -> None:
        self.spoken.append(text)
        self._current = (on_end, on_error)
        if self.auto_finish:
            self.finish()

    def finish(self) -> None:
        """Complete the utterance currently playing."""
        if self._current is None:
            return
        on_end, _ = self._current
        self._current = None
        on_end()

    def fail(self, error: str = "synthesis-failed") -> None:
        if self._current is None:
            return
        _, on_error = self._current
        self._current = None
        on_error(error)

    def cancel(self) -> None:
        self.cancel_count += 1
        # Cancelling reports the interrupted utterance as an error
        self.fail("canceled")


class FakeSpeechProvider(SpeechCapabilityProvider):

    def __init__(self, recognizer: Optional[FakeRecognitionEngine] = None,
                 synthesizer: Optional[FakeSynthesisEngine] = None):
        self.recognizer = recognizer
        self.synthesizer = synthesizer

    def recognition_supported(self) -> bool:
        return self.recognizer is not None

    def synthesis_supported(self) -> bool:
        return self.synthesizer is not None

    def create_recognizer(self) -> Optional[RecognitionEngine]:
        return self.recognizer

    def create_synthesizer(self) -> Optional[SynthesisEngine]:
        return self.synthesizer


# =============================================================================
# Backend
# =============================================================================

class MockGateway(RemoteGateway):
    """Gateway returning canned backend responses and recording every call."""

    def __init__(self,
                 scores: Optional[List[float]] = None,
                 questions: Optional[List[str]] = None,
                 execute_response: Optional[Dict[str, Any]] = None,
                 chat_reply: str = "Happy to help with that.",
                 history: Optional[List[Dict[str, Any]]] = None,
                 resumes: Optional[List[Dict[str, Any]]] = None):
        # Don't call super().__init__ to avoid creating an HTTP session
        self.session = AuthSession()
        self.scores = list(scores or [])
        self.questions = questions or [
            "Tell me about a project you are proud of.",
            "Describe a time you disagreed with a teammate.",
            "How do you handle tight deadlines?",
        ]
        self.execute_response = execute_response or {
            "success": True, "status": "Accepted", "stdout": "42\n", "time": "0.01", "memory": 3100
        }
        self.chat_reply = chat_reply
        self.history = history or []
        self.resumes = resumes or []
        self.calls: List[Tuple[str, tuple]] = []
        self.fail_with: Dict[str, Exception] = {}
        self.execute_gate: Optional[threading.Event] = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, args))
        error = self.fail_with.pop(name, None)
        if error is not None:
            raise error

    def calls_to(self, name: str) -> List[tuple]:
        return [args for call, args in self.calls if call == name]

    def _next_score(self) -> float:
        return self.scores.pop(0) if self.scores else 75

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self._record("login", email)
        return {"message": "Login successful", "token": "test-token", "email": email, "userId": 42}

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        self._record("register", name, email)
        return {"message": "Registered", "token": "test-token", "email": email, "userId": 43}

    def upload_resume(self, path: str) -> Any:
        self._record("upload_resume", path)
        return {"id": 1, "fileName": path}

    def list_resumes(self) -> List[Dict[str, Any]]:
        self._record("list_resumes")
        return list(self.resumes)

    def analyze_resume(self, path: str, job_description: Optional[str] = None) -> Dict[str, Any]:
        self._record("analyze_resume", path, job_description)
        return {"overallScore": 81, "strengths": ["Clear impact"], "improvements": ["Add metrics"],
                "keywords": ["python"], "summary": "Solid resume."}

    def start_interview(self, job_title: str, job_description: str, round_type: str) -> Dict[str, Any]:
        self._record("start_interview", job_title, job_description, round_type)
        return {
            "id": 7,
            "jobTitle": job_title,
            "roundType": round_type,
            "questions": [{"id": i + 1, "questionText": q} for i, q in enumerate(self.questions)],
        }

    def submit_answer(self, question_id, answer: str) -> Dict[str, Any]:
        self._record("submit_answer", question_id, answer)
        score = self._next_score()
        return {"score": score, "aiFeedback": f"Feedback for question {question_id}"}

    def submit_voice_answer(self, question_id, question_text: str, user_answer: str) -> Dict[str, Any]:
        self._record("submit_voice_answer", question_id, question_text, user_answer)
        score = self._next_score()
        return {"success": True, "score": score, "feedbackText": f"Spoken feedback for question {question_id}"}

    def interview_history(self) -> Any:
        self._record("interview_history")
        return self.history

    def download_report(self, interview_id) -> Tuple[str, bytes]:
        self._record("download_report", interview_id)
        return f"Interview_{interview_id}.pdf", b"%PDF-1.4 mock report"

    def execute_code(self, source_code: str, language: str, stdin: str = "",
                     timeout: float = 20.0) -> Dict[str, Any]:
        self._record("execute_code", source_code, language, stdin)
        if self.execute_gate is not None:
            # Simulates a request that never resolves until the test releases it
            self.execute_gate.wait()
        return dict(self.execute_response)

    def chat(self, message: str, interview_id=None) -> Dict[str, Any]:
        self._record("chat", message, interview_id)
        return {"success": True, "reply": self.chat_reply}

    def close(self) -> None:
        pass


# =============================================================================
# Fixtures
# =============================================================================

def create_mock_interview(round_type: RoundType = RoundType.BEHAVIORAL,
                          job_title: str = "Backend Engineer",
                          count: int = 3) -> Interview:
    """An interview with ``count`` numbered questions."""
    return Interview(
        id=7,
        job_title=job_title,
        questions=[Question(id=i + 1, text=f"Question text {i + 1}") for i in range(count)],
        round_type=round_type,
    )


def fixed_submitter(scores: List[int]) -> Callable[[Question, str], Feedback]:
    """Submitter that hands out the given scores in order."""
    remaining = list(scores)

    def submit(question: Question, answer: str) -> Feedback:
        if not remaining:
            raise GatewayError("No more canned scores")
        return Feedback(score=remaining.pop(0), explanation=f"Feedback for {question.id}")
    return submit


class TestInterviewBundle:
    """Helper for validating finalized bundles."""
    __test__ = False

    @staticmethod
    def validate_bundle(bundle: InterviewBundle) -> List[str]:
        """
        Returns:
            List of validation error messages (empty if valid)
        """
        issues = []
        if not bundle.questions:
            issues.append("No questions recorded")
        if len(bundle.answers) != len(bundle.questions):
            issues.append("Answer count does not match question count")
        if len(bundle.feedbacks) > len(bundle.questions):
            issues.append("More feedback than questions")
        for i, feedback in enumerate(bundle.feedbacks):
            if not 0 <= feedback.score <= 100:
                issues.append(f"Feedback {i + 1} score out of range: {feedback.score}")
        return issues

    @staticmethod
    def assert_valid_bundle(bundle: InterviewBundle) -> None:
        issues = TestInterviewBundle.validate_bundle(bundle)
        if issues:
            raise AssertionError(f"Invalid interview bundle: {'; '.join(issues)}")

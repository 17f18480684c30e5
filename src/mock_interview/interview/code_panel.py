"""
Code execution panel: one code buffer, a language, and at most one remote run.
"""
import time
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Callable, Dict, List, Optional, Tuple

from ..config import CODE_EXECUTION_TIMEOUT, DEFAULT_CODE_LANGUAGE
from ..errors import GatewayError, GatewayTimeout
from ..infrastructure.api import RemoteGateway
from .models import ExecutionResult, Feedback
from .schemas import parse_execution
from .events import Notifier, CodeExecutedEvent
from .session import SessionController

logger = logging.getLogger("code_panel")

LANGUAGES: Dict[str, str] = {
    "python": "Python",
    "java": "Java",
    "javascript": "JavaScript",
    "cpp": "C++",
    "c": "C",
    "csharp": "C#",
    "go": "Go",
    "rust": "Rust",
}

TEMPLATES: Dict[str, str] = {
    "python": '# Write your Python code here\ndef solution():\n    pass\n\nif __name__ == "__main__":\n    solution()',
    "java": 'public class Solution {\n    public static void main(String[] args) {\n        // Write your Java code here\n    }\n}',
    "javascript": '// Write your JavaScript code here\nfunction solution() {\n    // your code\n}\n\nsolution();',
    "cpp": '#include <iostream>\nusing namespace std;\n\nint main() {\n    // Write your C++ code here\n    return 0;\n}',
    "c": '#include <stdio.h>\n\nint main() {\n    // Write your C code here\n    return 0;\n}',
    "csharp": 'using System;\n\nclass Program {\n    static void Main() {\n        // Write your C# code here\n    }\n}',
    "go": 'package main\n\nimport "fmt"\n\nfunc main() {\n    // Write your Go code here\n}',
    "rust": 'fn main() {\n    // Write your Rust code here\n}',
}

TIMEOUT_STATUS = "Timeout"


def render_result(result: ExecutionResult) -> List[Tuple[str, str]]:
    """
    Labelled sections for an execution result, in display order.

    Each failure phase gets its own label so the user can tell a runtime error
    from a compile error from a failed request.
    """
    header = result.status
    if result.time:
        header += f"  {result.time}s"
    if result.memory:
        header += f"  {result.memory} KB"
    sections = [("Status", header)]
    if result.stdout:
        sections.append(("Output", result.stdout))
    if result.stderr:
        sections.append(("Error", result.stderr))
    if result.compile_output:
        sections.append(("Compilation Error", result.compile_output))
    if result.error:
        sections.append(("Error", result.error))
    return sections


class CodeExecutionPanel:
    """Editor state for coding rounds, wired to the session for submits."""

    def __init__(self,
                 gateway: RemoteGateway,
                 controller: SessionController,
                 timeout: float = CODE_EXECUTION_TIMEOUT,
                 language: str = DEFAULT_CODE_LANGUAGE,
                 clock: Callable[[], float] = time.monotonic):
        if language not in TEMPLATES:
            raise ValueError(f"Unsupported language: {language}")
        self.gateway = gateway
        self.controller = controller
        self.timeout = timeout
        self.clock = clock
        self.notifier: Notifier = controller.notifier

        self.language = language
        self.code = TEMPLATES[language]
        self.stdin = ""
        self.result: Optional[ExecutionResult] = None
        self.running = False
        self._run_started: Optional[float] = None
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="code-run")

    @property
    def elapsed_seconds(self) -> float:
        """Wall-clock time of the run in progress, or 0 when idle."""
        if self._run_started is None:
            return 0.0
        return self.clock() - self._run_started

    def set_code(self, code: str) -> None:
        self.code = code
        self.controller.update_answer(code, self.language)

    def set_language(self, language: str) -> None:
        """
        Switch language. An empty buffer or an untouched starter template is
        replaced by the new language's template; user code is kept.
        """
        if language not in TEMPLATES:
            raise ValueError(f"Unsupported language: {language}")
        if not self.code or self.code == TEMPLATES[self.language]:
            self.code = TEMPLATES[language]
        self.language = language
        self.result = None

    def load(self, code: Optional[str], language: Optional[str]) -> None:
        """Show a question's saved buffer, or a fresh template if it has none."""
        self.language = language if language in TEMPLATES else DEFAULT_CODE_LANGUAGE
        self.code = code or TEMPLATES[self.language]
        self.result = None

    def run(self) -> Optional[ExecutionResult]:
        """
        Execute the buffer remotely, waiting at most ``timeout`` seconds.

        Returns:
            The result, or None if the run was rejected (already running or blank)
        """
        if self.running:
            logger.info("Run ignored; one is already in flight")
            return None
        if not self.code.strip():
            self.notifier.error("Code required", "Please write some code before running it.")
            return None

        self.running = True
        self.result = None
        self._run_started = self.clock()
        logger.info(f"Running {self.language} code ({len(self.code)} chars)")
        try:
            future = self._executor.submit(
                self.gateway.execute_code, self.code, self.language, self.stdin, self.timeout
            )
            try:
                data = future.result(timeout=self.timeout)
                result = parse_execution(data, wall_seconds=self.elapsed_seconds)
            except (FutureTimeout, GatewayTimeout):
                future.cancel()
                result = self._timeout_result()
            except GatewayError as e:
                logger.error(f"Execution request failed: {e}")
                result = ExecutionResult(success=False, status="Error", error=str(e) or "Execution failed",
                                         wall_seconds=self.elapsed_seconds)
        finally:
            self.running = False

        self._run_started = None
        self.result = result
        if result.timed_out:
            self.notifier.error("Execution timed out",
                                "Your code took too long to run and may have an infinite loop.")
        self.controller.event_bus.emit(CodeExecutedEvent(
            self.controller.session_id, time.time(), self.language, result.status, result.wall_seconds
        ))
        return result

    def _timeout_result(self) -> ExecutionResult:
        logger.warning(f"Execution exceeded {self.timeout:.0f}s")
        return ExecutionResult(
            success=False,
            status=TIMEOUT_STATUS,
            error=f"Execution timed out after {self.timeout:.0f} seconds. Your code may have an infinite loop.",
            wall_seconds=self.elapsed_seconds,
        )

    def submit(self) -> Optional[Feedback]:
        """Hand the buffer and language to the session as the current answer."""
        return self.controller.submit(self.code, self.language)

    def close(self) -> None:
        self._executor.shutdown(wait=False)

"""
REST client for the mock interview backend.
"""
import os
import re
import json
import logging
from typing import Optional, Dict, Any, List, Tuple, Union

import requests

from ...config import API_BASE_URL, REQUEST_TIMEOUT, CODE_EXECUTION_TIMEOUT, RESUME_CONTENT_TYPES
from ...errors import GatewayError, GatewayTimeout
from .session_store import AuthSession

logger = logging.getLogger("gateway")

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class RemoteGateway:
    """The only boundary between the client and the backend HTTP API."""

    def __init__(self,
                 session: Optional[AuthSession] = None,
                 base_url: str = API_BASE_URL,
                 timeout: float = REQUEST_TIMEOUT,
                 http: Optional[requests.Session] = None):
        self.session = session or AuthSession()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        # Missing token is allowed; the server decides whether to refuse
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    def _user_params(self) -> Dict[str, str]:
        user_id = self.session.user_id
        return {"userId": user_id} if user_id else {}

    def _send(self, method: str, endpoint: str, timeout: Optional[float] = None,
              json_body: bool = True, **kwargs) -> requests.Response:
        url = f"{self.base_url}{endpoint}"
        logger.debug("%s %s", method, url)
        try:
            return self.http.request(
                method, url,
                headers=self._headers(json_body=json_body),
                timeout=timeout or self.timeout,
                **kwargs
            )
        except requests.Timeout as e:
            logger.warning("%s %s timed out: %s", method, endpoint, e)
            raise GatewayTimeout(f"Request to {endpoint} timed out") from e
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, endpoint, e)
            raise GatewayError(f"Network error: {e}") from e

    @staticmethod
    def _error_message(resp: requests.Response, default: str = "Request failed") -> str:
        text = resp.text or ""
        try:
            body = json.loads(text)
            if isinstance(body, dict):
                return body.get("error") or body.get("message") or default
            return default
        except ValueError:
            return text or f"HTTP {resp.status_code}: {resp.reason}"

    def request(self, method: str, endpoint: str, timeout: Optional[float] = None,
                json_body: bool = True, **kwargs) -> Any:
        """
        Issue a request and decode its JSON body.

        Returns:
            Decoded JSON, or an empty dict for an empty body

        Raises:
            GatewayTimeout: If the request timed out
            GatewayError: On network failure, non-2xx status or invalid JSON
        """
        resp = self._send(method, endpoint, timeout=timeout, json_body=json_body, **kwargs)
        logger.info("%s %s -> %d", method, endpoint, resp.status_code)

        if resp.status_code >= 400:
            raise GatewayError(self._error_message(resp), status_code=resp.status_code)

        text = resp.text
        if not text or not text.strip():
            return {}
        try:
            return json.loads(text)
        except ValueError:
            raise GatewayError("Invalid JSON response from server", status_code=resp.status_code)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self.request("POST", "/auth/login", json={"email": email, "password": password})

    def register(self, name: str, email: str, password: str) -> Dict[str, Any]:
        return self.request("POST", "/auth/register",
                            json={"name": name, "email": email, "password": password})

    # ------------------------------------------------------------------
    # Resumes
    # ------------------------------------------------------------------

    def _file_part(self, path: str) -> Tuple[str, Any, str]:
        ext = os.path.splitext(path)[1].lower()
        content_type = RESUME_CONTENT_TYPES.get(ext, "application/octet-stream")
        return os.path.basename(path), open(path, 'rb'), content_type

    def upload_resume(self, path: str) -> Any:
        name, handle, content_type = self._file_part(path)
        with handle:
            return self.request("POST", "/resume/upload", json_body=False,
                                files={"file": (name, handle, content_type)},
                                data=self._user_params())

    def list_resumes(self) -> List[Dict[str, Any]]:
        data = self.request("GET", "/resume/list", params=self._user_params())
        resumes = data.get("resumes") if isinstance(data, dict) else None
        return [r for r in resumes or [] if isinstance(r, dict)]

    def analyze_resume(self, path: str, job_description: Optional[str] = None) -> Dict[str, Any]:
        form = dict(self._user_params())
        if job_description and job_description.strip():
            form["jobDescription"] = job_description
        name, handle, content_type = self._file_part(path)
        with handle:
            return self.request("POST", "/resume-analyzer/analyze", json_body=False,
                                files={"file": (name, handle, content_type)}, data=form)

    # ------------------------------------------------------------------
    # Interviews
    # ------------------------------------------------------------------

    def start_interview(self, job_title: str, job_description: str, round_type: str) -> Dict[str, Any]:
        body = {"jobTitle": job_title, "jobDescription": job_description, "roundType": round_type}
        return self.request("POST", "/interview/start", json=body, params=self._user_params())

    def submit_answer(self, question_id: Union[str, int], answer: str) -> Dict[str, Any]:
        return self.request("POST", f"/interview/{question_id}/answer", json={"answer": answer})

    def submit_voice_answer(self, question_id: Union[str, int], question_text: str,
                            user_answer: str) -> Dict[str, Any]:
        body = {"questionId": question_id, "questionText": question_text, "userAnswer": user_answer}
        return self.request("POST", "/voice-interview/submit", json=body)

    def interview_history(self) -> Any:
        return self.request("GET", "/interview/history", params=self._user_params())

    def download_report(self, interview_id: Union[str, int]) -> Tuple[str, bytes]:
        """
        Fetch the PDF report for an interview.

        Returns:
            Tuple of (filename, pdf_bytes)
        """
        endpoint = f"/interview/{interview_id}/download-pdf"
        resp = self._send("GET", endpoint, json_body=False, params=self._user_params())
        if resp.status_code >= 400:
            raise GatewayError(self._error_message(resp, "Failed to download PDF"),
                               status_code=resp.status_code)

        filename = f"Interview_{interview_id}.pdf"
        disposition = resp.headers.get("Content-Disposition")
        if disposition:
            match = _FILENAME_RE.search(disposition)
            if match and match.group(1):
                filename = match.group(1)
        logger.info("Downloaded report %s (%d bytes)", filename, len(resp.content))
        return filename, resp.content

    # ------------------------------------------------------------------
    # Compiler and voice chat
    # ------------------------------------------------------------------

    def execute_code(self, source_code: str, language: str, stdin: str = "",
                     timeout: float = CODE_EXECUTION_TIMEOUT) -> Dict[str, Any]:
        body = {"sourceCode": source_code, "language": language, "stdin": stdin}
        return self.request("POST", "/compiler/execute", json=body, timeout=timeout)

    def chat(self, message: str, interview_id: Optional[Union[str, int]] = None) -> Dict[str, Any]:
        return self.request("POST", "/voice-interview/chat",
                            json={"message": message, "interviewId": interview_id})

    def close(self) -> None:
        self.http.close()

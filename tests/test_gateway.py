"""
Tests for the REST gateway, with the HTTP session mocked out.
"""
import json
from unittest.mock import Mock

import pytest
import requests

from mock_interview.errors import GatewayError, GatewayTimeout
from mock_interview.infrastructure.api import RemoteGateway, AuthSession, User


def make_response(status_code=200, body=None, text=None, headers=None, content=b""):
    resp = Mock()
    resp.status_code = status_code
    resp.reason = "OK" if status_code < 400 else "Error"
    if text is None:
        text = json.dumps(body) if body is not None else ""
    resp.text = text
    resp.headers = headers or {}
    resp.content = content
    return resp


def make_gateway(response=None, token=None, user=None):
    http = Mock(spec=requests.Session)
    http.request.return_value = response or make_response(body={})
    session = AuthSession()
    if token:
        session.set(token, user or User(id="42", email="dev@example.com"))
    return RemoteGateway(session, base_url="http://api.test/api/", timeout=3.0, http=http), http


class TestHeaders:

    def test_bearer_token_attached(self):
        gateway, http = make_gateway(token="secret")
        gateway.request("GET", "/ping")

        args, kwargs = http.request.call_args
        assert args == ("GET", "http://api.test/api/ping")
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["timeout"] == 3.0

    def test_no_token_still_sends(self):
        gateway, http = make_gateway()
        gateway.request("GET", "/ping")

        headers = http.request.call_args.kwargs["headers"]
        assert "Authorization" not in headers

    def test_user_id_passed_as_query_param(self):
        gateway, http = make_gateway(make_response(body={"id": 1, "questions": []}), token="t")
        gateway.start_interview("SRE", "", "BEHAVIORAL")

        kwargs = http.request.call_args.kwargs
        assert kwargs["params"] == {"userId": "42"}
        assert kwargs["json"] == {"jobTitle": "SRE", "jobDescription": "", "roundType": "BEHAVIORAL"}


class TestResponses:

    def test_json_body_decoded(self):
        gateway, _ = make_gateway(make_response(body={"score": 80, "aiFeedback": "ok"}))
        assert gateway.submit_answer(5, "answer") == {"score": 80, "aiFeedback": "ok"}

    def test_empty_body_is_empty_dict(self):
        gateway, _ = make_gateway(make_response(text="   "))
        assert gateway.request("POST", "/anything") == {}

    def test_invalid_json(self):
        gateway, _ = make_gateway(make_response(text="<html>oops</html>"))
        with pytest.raises(GatewayError, match="Invalid JSON"):
            gateway.request("GET", "/anything")

    def test_error_status_uses_server_message(self):
        gateway, _ = make_gateway(make_response(401, body={"message": "Invalid credentials"}))
        with pytest.raises(GatewayError) as info:
            gateway.login("dev@example.com", "wrong")

        assert str(info.value) == "Invalid credentials"
        assert info.value.status_code == 401

    def test_error_status_with_plain_text(self):
        gateway, _ = make_gateway(make_response(500, text="Internal failure"))
        with pytest.raises(GatewayError, match="Internal failure"):
            gateway.request("GET", "/anything")

    def test_timeout(self):
        gateway, http = make_gateway()
        http.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(GatewayTimeout):
            gateway.request("GET", "/slow")

    def test_connection_error(self):
        gateway, http = make_gateway()
        http.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(GatewayError) as info:
            gateway.request("GET", "/down")
        assert not isinstance(info.value, GatewayTimeout)

    def test_execute_code_uses_its_own_timeout(self):
        gateway, http = make_gateway(make_response(body={"success": True}))
        gateway.execute_code("print(1)", "python", timeout=20.0)

        kwargs = http.request.call_args.kwargs
        assert kwargs["timeout"] == 20.0
        assert kwargs["json"] == {"sourceCode": "print(1)", "language": "python", "stdin": ""}


class TestDownload:

    def test_filename_from_content_disposition(self):
        resp = make_response(headers={"Content-Disposition": 'attachment; filename="report-12.pdf"'},
                             content=b"%PDF")
        gateway, _ = make_gateway(resp)

        assert gateway.download_report(12) == ("report-12.pdf", b"%PDF")

    def test_default_filename(self):
        gateway, _ = make_gateway(make_response(content=b"%PDF"))
        assert gateway.download_report(12) == ("Interview_12.pdf", b"%PDF")

    def test_download_failure(self):
        gateway, _ = make_gateway(make_response(404, text=""))
        with pytest.raises(GatewayError) as info:
            gateway.download_report(12)
        assert info.value.status_code == 404


class TestUploads:

    def test_upload_sends_multipart_without_json_header(self, tmp_path):
        resume = tmp_path / "cv.pdf"
        resume.write_bytes(b"%PDF-1.4")
        gateway, http = make_gateway(make_response(body={"id": 1}), token="t")

        gateway.upload_resume(str(resume))

        kwargs = http.request.call_args.kwargs
        name, _, content_type = kwargs["files"]["file"]
        assert (name, content_type) == ("cv.pdf", "application/pdf")
        assert "Content-Type" not in kwargs["headers"]
        assert kwargs["data"] == {"userId": "42"}

    def test_analyze_includes_job_description(self, tmp_path):
        resume = tmp_path / "cv.docx"
        resume.write_bytes(b"PK")
        gateway, http = make_gateway(make_response(body={"overallScore": 70}))

        gateway.analyze_resume(str(resume), "Python backend role")

        assert http.request.call_args.kwargs["data"] == {"jobDescription": "Python backend role"}


class TestResumeListing:

    def test_list_resumes_for_signed_in_user(self):
        body = {"resumes": [{"id": 3, "fileName": "cv.pdf"}, "junk"]}
        gateway, http = make_gateway(make_response(body=body), token="t")

        assert gateway.list_resumes() == [{"id": 3, "fileName": "cv.pdf"}]
        args, kwargs = http.request.call_args
        assert args == ("GET", "http://api.test/api/resume/list")
        assert kwargs["params"] == {"userId": "42"}

    def test_missing_resumes_key_is_empty(self):
        gateway, _ = make_gateway(make_response(body={"message": "none"}))
        assert gateway.list_resumes() == []

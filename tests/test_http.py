#!/usr/bin/env python3
"""
Tests for the control-plane HTTP client (urllib mocked).

Run with: pytest tests/test_http.py -v
"""
import io
import urllib.error
from email.message import Message
from unittest.mock import MagicMock, patch

import pytest

from conftest import BASE


def fake_urlopen_response(status=200, body=b"{}", headers=None):
    response = MagicMock()
    response.status = status
    response.read.return_value = body
    message = Message()
    for name, value in (headers or []):
        message[name] = value
    response.headers = message
    response.__enter__.return_value = response
    return response


class TestRuntimeHttpClient:
    """GET/POST against the Runtime API."""

    def test_get_without_timeout(self):
        from simple_lambda.runtime.http import RuntimeHttpClient

        answer = fake_urlopen_response(body=b'{"name": "Ada"}', headers=[
            ("Lambda-Runtime-Aws-Request-Id", "abc"),
            ("Lambda-Runtime-Deadline-Ms", "1"),
        ])
        with patch("urllib.request.urlopen", return_value=answer) as urlopen:
            response = RuntimeHttpClient().get(f"{BASE}/invocation/next")

        request = urlopen.call_args[0][0]
        assert request.get_method() == "GET"
        assert request.full_url == f"{BASE}/invocation/next"
        assert "timeout" not in urlopen.call_args[1]
        assert response.ok
        assert response.body == b'{"name": "Ada"}'
        assert response.headers["Lambda-Runtime-Aws-Request-Id"] == "abc"
        assert response.header_first("lambda-runtime-deadline-ms") == "1"
        print("✓ Long-poll GET has no client timeout")

    def test_post_sends_json_with_timeout(self):
        from simple_lambda.runtime.http import RuntimeHttpClient

        with patch("urllib.request.urlopen", return_value=fake_urlopen_response(status=202)) as urlopen:
            response = RuntimeHttpClient(post_timeout=5).post(
                f"{BASE}/invocation/abc/error",
                '{"errorMessage": "x", "errorType": "Y"}',
                {"Lambda-Runtime-Function-Error-Type": "Y"},
            )

        request = urlopen.call_args[0][0]
        assert request.get_method() == "POST"
        assert request.data == b'{"errorMessage": "x", "errorType": "Y"}'
        assert request.get_header("Content-type") == "application/json"
        assert request.get_header("Lambda-runtime-function-error-type") == "Y"
        assert urlopen.call_args[1]["timeout"] == 5
        assert response.status_code == 202

    def test_http_error_returned_as_response(self):
        from simple_lambda.runtime.http import RuntimeHttpClient

        error = urllib.error.HTTPError(
            f"{BASE}/invocation/abc/response", 413, "Payload Too Large", Message(),
            io.BytesIO(b'{"errorType": "RequestEntityTooLarge"}'),
        )
        with patch("urllib.request.urlopen", side_effect=error):
            response = RuntimeHttpClient().post(f"{BASE}/invocation/abc/response", b"{}")

        assert not response.ok
        assert response.status_code == 413
        assert "RequestEntityTooLarge" in response.body_as_string()

    def test_transport_error_raises(self):
        from simple_lambda.runtime.http import RuntimeHttpClient

        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused")):
            with pytest.raises(urllib.error.URLError):
                RuntimeHttpClient().get(f"{BASE}/invocation/next")

    def test_post_and_forget_never_raises(self):
        from simple_lambda.runtime.http import RuntimeHttpClient

        with patch("urllib.request.urlopen", side_effect=ConnectionRefusedError()):
            assert RuntimeHttpClient().post_and_forget(f"{BASE}/init/error", b"{}") is None
        print("✓ post_and_forget swallows transport failures")

    def test_multi_value_headers(self):
        from simple_lambda.runtime.http import HttpResponse

        response = HttpResponse(200, b"", (("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")))

        assert response.headers_multi_values() == {"Set-Cookie": ["a=1", "b=2"]}
        assert response.headers == {"Set-Cookie": "a=1"}
        assert response.header_first("missing") is None

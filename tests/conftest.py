"""
Shared fixtures: an in-memory Runtime API and a hello-world function.
"""
import os
import sys
from typing import Callable, Dict, List, Optional, Tuple

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from simple_lambda.runtime.endpoints import RuntimeEndpoints
from simple_lambda.runtime.http import HttpResponse

RUNTIME_API = "127.0.0.1:9001"
BASE = f"http://{RUNTIME_API}/2018-06-01/runtime"


def invocation(body, request_id: Optional[str] = "req-1", **headers) -> HttpResponse:
    """GET /invocation/next answer carrying `body` for `request_id`."""
    items = []
    if request_id is not None:
        items.append(("Lambda-Runtime-Aws-Request-Id", request_id))
    items.extend((name.replace("_", "-"), value) for name, value in headers.items())
    data = body.encode("utf-8") if isinstance(body, str) else body
    return HttpResponse(status_code=200, body=data, header_items=tuple(items))


class FakeRuntimeApi:
    """
    Control plane double recording every call.

    Serves queued GET answers in order; `on_drained` runs when the last one
    is handed out, which is where tests stop the loop.
    """

    def __init__(self, answers: List[HttpResponse] = None, on_drained: Callable[[], None] = None):
        self.answers = list(answers or [])
        self.on_drained = on_drained
        self.calls: List[Tuple[str, str, bytes, Dict[str, str]]] = []
        self.post_error: Optional[Exception] = None
        self.post_status = 202
        self.closed = False

    def get(self, url: str) -> HttpResponse:
        self.calls.append(("GET", url, b"", {}))
        if not self.answers:
            raise ConnectionRefusedError("no invocation queued")
        answer = self.answers.pop(0)
        if not self.answers and self.on_drained is not None:
            self.on_drained()
        return answer

    def post(self, url: str, body, headers: Dict[str, str] = None) -> HttpResponse:
        data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        for name, value in (headers or {}).items():
            # same constraints http.client puts on header values
            value.encode("latin-1")
            if "\r" in value or "\n" in value:
                raise ValueError(f"Invalid header value {value!r}")
        self.calls.append(("POST", url, data, dict(headers or {})))
        if self.post_error is not None:
            raise self.post_error
        return HttpResponse(status_code=self.post_status, body=b'{"status":"OK"}')

    def post_and_forget(self, url: str, body, headers: Dict[str, str] = None):
        try:
            return self.post(url, body, headers)
        except Exception:
            return None

    def close(self):
        self.closed = True

    @property
    def posts(self) -> List[Tuple[str, bytes, Dict[str, str]]]:
        return [(url, body, headers) for method, url, body, headers in self.calls if method == "POST"]

    @property
    def gets(self) -> List[str]:
        return [url for method, url, _, _ in self.calls if method == "GET"]

    def posts_to(self, suffix: str) -> List[Tuple[str, bytes, Dict[str, str]]]:
        return [p for p in self.posts if p[0].endswith(suffix)]

    @property
    def init_errors(self):
        return self.posts_to("/init/error")

    @property
    def invocation_posts(self):
        return [p for p in self.posts if "/invocation/" in p[0]]


def hello_world(event, context):
    """The classic greeting function."""
    return {"greeting": f"Hello - {event['name']}"}


@pytest.fixture
def endpoints() -> RuntimeEndpoints:
    return RuntimeEndpoints.from_api_address(RUNTIME_API)


@pytest.fixture
def runtime_api() -> FakeRuntimeApi:
    return FakeRuntimeApi()

# =============================================================================
# Runtime HTTP Client
# =============================================================================
# Minimal GET/POST client for the control plane, built on urllib.request.
# The GET long-poll never times out client-side; POSTs do.
# =============================================================================

import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

Body = Union[bytes, bytearray, str]

CONTENT_TYPE_JSON = "application/json"


@dataclass(frozen=True)
class HttpResponse:
    """Status, body and headers of a control-plane response."""
    status_code: int
    body: bytes = b""
    header_items: Tuple[Tuple[str, str], ...] = field(default_factory=tuple, repr=False)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def body_as_string(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def headers_multi_values(self) -> Dict[str, List[str]]:
        multi: Dict[str, List[str]] = {}
        for name, value in self.header_items:
            multi.setdefault(name, []).append(value)
        return multi

    @property
    def headers(self) -> Dict[str, str]:
        """Flat header map holding the first value of every header."""
        return {name: values[0] for name, values in self.headers_multi_values().items()}

    def header_first(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.header_items:
            if key.lower() == lowered:
                return value
        return None


class RuntimeHttpClient:
    """
    HTTP client used by the invocation loop.

    Non-2xx answers are returned as responses, not raised; transport
    failures (connection refused, timeouts) raise urllib.error.URLError
    or OSError.
    """

    def __init__(self, post_timeout: float = 30.0):
        self.post_timeout = post_timeout
        self._closed = False

    def get(self, url: str) -> HttpResponse:
        req = urllib.request.Request(url, method="GET")
        return self._send(req, timeout=None)

    def post(self, url: str, body: Body, headers: Dict[str, str] = None) -> HttpResponse:
        data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        all_headers = {"Content-Type": CONTENT_TYPE_JSON}
        all_headers.update(headers or {})
        req = urllib.request.Request(url, data=data, method="POST", headers=all_headers)
        return self._send(req, timeout=self.post_timeout)

    def post_and_forget(self, url: str, body: Body, headers: Dict[str, str] = None) -> Optional[HttpResponse]:
        """POST without caring about the outcome; failures are logged, never raised."""
        try:
            response = self.post(url, body, headers)
        except Exception as e:
            logger.error(f"POST to {url} failed: {e}")
            return None
        if not response.ok:
            logger.warning(f"POST to {url} answered with HTTP {response.status_code}: {response.body_as_string()}")
        return response

    def close(self) -> None:
        self._closed = True

    def _send(self, req: urllib.request.Request, timeout: Optional[float]) -> HttpResponse:
        try:
            if timeout is None:
                r = urllib.request.urlopen(req)
            else:
                r = urllib.request.urlopen(req, timeout=timeout)
            with r:
                return HttpResponse(
                    status_code=r.status,
                    body=r.read(),
                    header_items=tuple(r.headers.items()),
                )
        except urllib.error.HTTPError as e:
            return HttpResponse(
                status_code=e.code,
                body=e.read() or b"",
                header_items=tuple(e.headers.items()) if e.headers else (),
            )

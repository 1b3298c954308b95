# =============================================================================
# Invocation Context
# =============================================================================
# Immutable per-invocation metadata derived from the Runtime API headers of
# GET /invocation/next, plus function metadata from the process config.
# One context per loop iteration; never shared across iterations.
# =============================================================================

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from simple_lambda.runtime.config import RuntimeConfig
from simple_lambda.runtime.errors import ProtocolError

logger = logging.getLogger(__name__)


class RuntimeHeaders:
    """Runtime API header names."""
    REQUEST_ID = "Lambda-Runtime-Aws-Request-Id"
    DEADLINE_MS = "Lambda-Runtime-Deadline-Ms"
    TRACE_ID = "Lambda-Runtime-Trace-Id"
    INVOKED_FUNCTION_ARN = "Lambda-Runtime-Invoked-Function-Arn"
    CLIENT_CONTEXT = "Lambda-Runtime-Client-Context"
    COGNITO_IDENTITY = "Lambda-Runtime-Cognito-Identity"
    FUNCTION_ERROR_TYPE = "Lambda-Runtime-Function-Error-Type"


@dataclass(frozen=True)
class InvocationContext:
    """
    Context handed to the user function with every event.

    Attribute names follow the AWS Python context object, so functions
    written for the managed runtime work unchanged.
    """
    request_id: str
    deadline_ms: Optional[int] = None
    trace_id: Optional[str] = None
    invoked_function_arn: str = ""
    client_context: Optional[Dict[str, Any]] = None
    identity: Optional[Dict[str, Any]] = None
    function_name: str = ""
    function_version: str = ""
    memory_limit_in_mb: Optional[int] = None
    log_group_name: str = ""
    log_stream_name: str = ""
    headers: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        if not self.request_id:
            raise ProtocolError("Request ID is not present!")

    @property
    def aws_request_id(self) -> str:
        return self.request_id

    @property
    def has_deadline(self) -> bool:
        return self.deadline_ms is not None

    def get_remaining_time_in_millis(self) -> Optional[int]:
        """Milliseconds left before the deadline, or None without a deadline."""
        if self.deadline_ms is None:
            return None
        return max(self.deadline_ms - int(time.time() * 1000), 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requestId": self.request_id,
            "deadlineMs": self.deadline_ms,
            "traceId": self.trace_id,
            "invokedFunctionArn": self.invoked_function_arn,
            "functionName": self.function_name,
            "functionVersion": self.function_version,
            "memoryLimitInMb": self.memory_limit_in_mb,
        }

    @classmethod
    def of_request_id(cls, request_id: str, **kwargs) -> "InvocationContext":
        """Create a context for a request id alone (local invocation, tests)."""
        return cls(request_id=request_id, **kwargs)

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], config: RuntimeConfig = None) -> "InvocationContext":
        """
        Parse a context from Runtime API response headers.

        Header lookup is case-insensitive. Optional headers that cannot be
        parsed are dropped with a warning; only the request id is mandatory.

        Raises:
            ProtocolError: request id header missing or empty
        """
        lowered = {str(k).lower(): v for k, v in headers.items()}

        def header(name: str) -> Optional[str]:
            value = lowered.get(name.lower())
            return value if value else None

        request_id = (header(RuntimeHeaders.REQUEST_ID) or "").strip()
        if not request_id:
            raise ProtocolError("Request ID is not present!")

        metadata: Dict[str, Any] = {}
        if config is not None:
            metadata = {
                "function_name": config.function_name,
                "function_version": config.function_version,
                "memory_limit_in_mb": config.memory_limit_in_mb,
                "log_group_name": config.log_group_name,
                "log_stream_name": config.log_stream_name,
            }

        return cls(
            request_id=request_id,
            deadline_ms=_parse_deadline(header(RuntimeHeaders.DEADLINE_MS)),
            trace_id=header(RuntimeHeaders.TRACE_ID),
            invoked_function_arn=header(RuntimeHeaders.INVOKED_FUNCTION_ARN) or "",
            client_context=_parse_json_header(RuntimeHeaders.CLIENT_CONTEXT, header(RuntimeHeaders.CLIENT_CONTEXT)),
            identity=_parse_json_header(RuntimeHeaders.COGNITO_IDENTITY, header(RuntimeHeaders.COGNITO_IDENTITY)),
            headers=dict(headers),
            **metadata,
        )


def _parse_deadline(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring unparseable {RuntimeHeaders.DEADLINE_MS} header: {value!r}")
        return None


def _parse_json_header(name: str, value: Optional[str]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        logger.warning(f"Ignoring non-JSON {name} header")
        return None
    return parsed if isinstance(parsed, dict) else None

# =============================================================================
# API Gateway Events
# =============================================================================
# Request/response envelopes for API Gateway REST API (v1) and HTTP API (v2)
# Lambda proxy integrations.
# =============================================================================

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from simple_lambda.runtime.errors import ConversionException

DEFAULT_RESPONSE_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class GatewayRequest:
    """
    Incoming API Gateway proxy event.

    Attributes:
        body: request body as sent by the gateway (possibly base64)
        is_base64_encoded: whether `body` is base64
        headers: request headers
        query_string_parameters: query parameters
        path_parameters: path parameters
        http_method: method from requestContext (v2) or the event (v1)
        path: raw path (v2) or path (v1)
        request_context: the untouched requestContext
        version: payload format version ("1.0" or "2.0")
    """
    body: Optional[str] = None
    is_base64_encoded: bool = False
    headers: Dict[str, str] = field(default_factory=dict)
    query_string_parameters: Dict[str, str] = field(default_factory=dict)
    path_parameters: Dict[str, str] = field(default_factory=dict)
    http_method: Optional[str] = None
    path: Optional[str] = None
    request_context: Dict[str, Any] = field(default_factory=dict)
    version: str = "1.0"

    @classmethod
    def from_dict(cls, event: Dict[str, Any]) -> "GatewayRequest":
        if not isinstance(event, dict):
            raise ConversionException(f"Gateway event must be a JSON object, got {type(event).__name__}")
        request_context = event.get("requestContext") or {}
        http = request_context.get("http") or {}
        body = event.get("body")
        if body is not None and not isinstance(body, str):
            raise ConversionException("Gateway event body must be a string")
        return cls(
            body=body,
            is_base64_encoded=bool(event.get("isBase64Encoded", False)),
            headers=event.get("headers") or {},
            query_string_parameters=event.get("queryStringParameters") or {},
            path_parameters=event.get("pathParameters") or {},
            http_method=http.get("method") or event.get("httpMethod") or request_context.get("httpMethod"),
            path=event.get("rawPath") or http.get("path") or event.get("path"),
            request_context=request_context,
            version=str(event.get("version") or "1.0"),
        )

    def body_bytes(self) -> bytes:
        """Body decoded from base64 when flagged; empty bytes for no body."""
        if not self.body:
            return b""
        if not self.is_base64_encoded:
            return self.body.encode("utf-8")
        try:
            return base64.b64decode(self.body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConversionException(f"Gateway body is flagged base64 but can not be decoded: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        event: Dict[str, Any] = {
            "version": self.version,
            "body": self.body,
            "isBase64Encoded": self.is_base64_encoded,
            "headers": self.headers,
            "queryStringParameters": self.query_string_parameters,
            "pathParameters": self.path_parameters,
            "requestContext": self.request_context,
        }
        if self.version == "1.0":
            event["httpMethod"] = self.http_method
            event["path"] = self.path
        else:
            event["rawPath"] = self.path
        return event


@dataclass(frozen=True)
class GatewayResponse:
    """Proxy integration response returned to API Gateway."""
    status_code: int = 200
    body: str = ""
    headers: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_RESPONSE_HEADERS))
    multi_value_headers: Dict[str, List[str]] = field(default_factory=dict)
    is_base64_encoded: bool = False

    @classmethod
    def of_bytes(cls, data: bytes, status_code: int = 200, content_type: str = "application/octet-stream") -> "GatewayResponse":
        return cls(
            status_code=status_code,
            body=base64.b64encode(data).decode("ascii"),
            headers={"Content-Type": content_type},
            is_base64_encoded=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "statusCode": self.status_code,
            "headers": self.headers,
            "body": self.body,
            "isBase64Encoded": self.is_base64_encoded,
        }
        if self.multi_value_headers:
            response["multiValueHeaders"] = self.multi_value_headers
        return response

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayResponse":
        return cls(
            status_code=int(data.get("statusCode", 200)),
            body=data.get("body") or "",
            headers=data.get("headers") or {},
            multi_value_headers=data.get("multiValueHeaders") or {},
            is_base64_encoded=bool(data.get("isBase64Encoded", False)),
        )

# =============================================================================
# Response / Error Codec
# =============================================================================
# Turns handler results into the bodies the Runtime API expects.
# encode_failure must never raise: it runs inside the failure path.
# =============================================================================

import json
import logging
from typing import Any, Dict, Union

from simple_lambda.runtime.convert import Converter, JsonConverter
from simple_lambda.runtime.result import Failure

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_TYPE = "UnknownError"
FALLBACK_FAILURE_BODY = b'{"errorMessage": "Error could not be serialized", "errorType": "UnknownError"}'


class ResponseCodec:
    """Encodes success payloads and failures for the control plane."""

    def __init__(self, converter: Converter = None):
        self.converter = converter or JsonConverter()

    def encode_success(self, result: Any) -> bytes:
        """
        Serialize a successful handler payload.

        Bytes are treated as a pre-formed wire body and passed through
        unchanged. Everything else goes through the converter, so objects
        exposing `to_dict()` (gateway responses) are encoded from their dict.

        Raises:
            ConversionException: the payload can not be serialized
        """
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)
        return self.converter.to_wire(result)

    def encode_failure(self, error: Union[Failure, BaseException, None]) -> bytes:
        """Serialize a failure as {"errorMessage", "errorType"}; never raises."""
        try:
            return json.dumps(self.failure_dict(error), ensure_ascii=False).encode("utf-8")
        except Exception:
            logger.exception("Failure body could not be serialized, using fallback")
            return FALLBACK_FAILURE_BODY

    @staticmethod
    def failure_dict(error: Union[Failure, BaseException, None]) -> Dict[str, str]:
        if isinstance(error, BaseException):
            error = Failure.from_exception(error)
        if not isinstance(error, Failure):
            return {"errorMessage": _safe_text(error), "errorType": UNKNOWN_ERROR_TYPE}
        return {
            "errorMessage": _safe_text(error.message),
            "errorType": _safe_text(error.kind) or UNKNOWN_ERROR_TYPE,
        }


def _safe_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    try:
        text = str(value)
    except Exception:
        return ""
    # lone surrogates can not be encoded as UTF-8
    return text.encode("utf-8", errors="replace").decode("utf-8")

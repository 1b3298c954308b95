# =============================================================================
# Runtime Package - Invocation Loop
# =============================================================================
# Implements the Lambda Runtime API client side:
# - poll the next invocation
# - dispatch it to the bound event handler
# - post the response, or the error, back
# =============================================================================

from simple_lambda.runtime.errors import (
    LambdaException,
    ConfigurationError,
    ContextException,
    ProtocolError,
    ConversionException,
    StatusException,
    BadRequestException,
    ValidationException,
)
from simple_lambda.runtime.config import RuntimeConfig, RuntimeVariables, configure_logging, get_runtime_api
from simple_lambda.runtime.context import InvocationContext, RuntimeHeaders
from simple_lambda.runtime.endpoints import RuntimeEndpoints
from simple_lambda.runtime.http import HttpResponse, RuntimeHttpClient
from simple_lambda.runtime.result import Success, Failure, HandlerResult
from simple_lambda.runtime.convert import Converter, JsonConverter
from simple_lambda.runtime.codec import ResponseCodec
from simple_lambda.runtime.deps import RuntimeContext
from simple_lambda.runtime.loop import Invocation, InvocationLoop, LoopState
from simple_lambda.runtime.bootstrap import Bootstrap, run

__all__ = [
    "LambdaException",
    "ConfigurationError",
    "ContextException",
    "ProtocolError",
    "ConversionException",
    "StatusException",
    "BadRequestException",
    "ValidationException",
    "RuntimeConfig",
    "RuntimeVariables",
    "configure_logging",
    "get_runtime_api",
    "InvocationContext",
    "RuntimeHeaders",
    "RuntimeEndpoints",
    "HttpResponse",
    "RuntimeHttpClient",
    "Success",
    "Failure",
    "HandlerResult",
    "Converter",
    "JsonConverter",
    "ResponseCodec",
    "RuntimeContext",
    "Invocation",
    "InvocationLoop",
    "LoopState",
    "Bootstrap",
    "run",
]

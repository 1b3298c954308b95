# =============================================================================
# simple_lambda - Custom AWS Lambda Runtime
# =============================================================================
# Polls the Lambda Runtime API, dispatches each invocation to a Python
# function and reports the result or a structured error back.
#
# Usage:
#     from simple_lambda import run
#
#     def handler(event, context):
#         return {"greeting": f"Hello - {event['name']}"}
#
#     if __name__ == "__main__":
#         raise SystemExit(run(lambda runtime_context: handler))
# =============================================================================

from simple_lambda.runtime import (
    Bootstrap,
    run,
    InvocationContext,
    RuntimeContext,
    LambdaException,
    StatusException,
    BadRequestException,
    ValidationException,
)
from simple_lambda.handlers import BodyEventHandler, InputEventHandler
from simple_lambda.events import GatewayRequest, GatewayResponse

__version__ = "0.1.0"

__all__ = [
    "Bootstrap",
    "run",
    "InvocationContext",
    "RuntimeContext",
    "LambdaException",
    "StatusException",
    "BadRequestException",
    "ValidationException",
    "BodyEventHandler",
    "InputEventHandler",
    "GatewayRequest",
    "GatewayResponse",
]

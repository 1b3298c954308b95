# =============================================================================
# Event Handlers
# =============================================================================
# Variants of the handler contract, selected once by qualifier:
# - inputEvent: raw event passthrough
# - bodyEvent:  API Gateway proxy request/response adaptation
# =============================================================================

from simple_lambda.handlers.base import EventHandler, RequestFunction
from simple_lambda.handlers.registry import (
    register_event_handler,
    get_event_handler,
    event_handler_exists,
    list_event_handlers,
)
from simple_lambda.handlers.input_event import InputEventHandler
from simple_lambda.handlers.body_event import BodyEventHandler

__all__ = [
    "EventHandler",
    "RequestFunction",
    "InputEventHandler",
    "BodyEventHandler",
    "register_event_handler",
    "get_event_handler",
    "event_handler_exists",
    "list_event_handlers",
]

# =============================================================================
# Input Event Handler
# =============================================================================
# Passes the raw event to the function as it was sent to the runtime.
# =============================================================================

import logging
import time

from simple_lambda.handlers.base import EventHandler, millis_since
from simple_lambda.handlers.registry import register_event_handler
from simple_lambda.runtime.context import InvocationContext
from simple_lambda.runtime.result import Failure, HandlerResult, Success

logger = logging.getLogger(__name__)


@register_event_handler("inputEvent")
class InputEventHandler(EventHandler):
    """Raw event in, function output out."""

    def handle(self, payload: bytes, context: InvocationContext) -> HandlerResult:
        logger.debug("Function input conversion started...")
        started = time.monotonic()
        try:
            event = self.convert_input(payload, self.function.input_type)
        except Exception as e:
            logger.warning(f"Function input conversion failed for request {context.request_id}: {e}")
            return Failure.from_exception(e)
        logger.debug(f"Function input conversion took: {millis_since(started)} millis")

        try:
            output = self.invoke_function(event, context)
        except Exception as e:
            logger.exception(f"Function '{self.function.name}' failed for request {context.request_id}")
            return Failure.from_exception(e)
        return Success(output)

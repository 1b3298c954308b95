# =============================================================================
# Body Event Handler
# =============================================================================
# API Gateway adapter: unwraps the proxy request, hands the body to the
# function and rewraps its output in a proxy response.
#
# StatusException (e.g. BadRequestException -> 400) becomes a status-coded
# response, so the gateway caller always gets a structured HTTP answer.
# Any other exception is an invocation failure.
# =============================================================================

import json
import logging
import time
from typing import Any

from simple_lambda.events.gateway import GatewayRequest, GatewayResponse
from simple_lambda.handlers.base import EventHandler, millis_since
from simple_lambda.handlers.registry import register_event_handler
from simple_lambda.runtime.codec import ResponseCodec
from simple_lambda.runtime.context import InvocationContext
from simple_lambda.runtime.errors import BadRequestException, StatusException
from simple_lambda.runtime.result import Failure, HandlerResult, Success

logger = logging.getLogger(__name__)


@register_event_handler("bodyEvent")
class BodyEventHandler(EventHandler):
    """API Gateway proxy request body in, proxy response out."""

    def handle(self, payload: bytes, context: InvocationContext) -> HandlerResult:
        logger.debug("Gateway request event conversion started...")
        started = time.monotonic()
        try:
            request = self.converter.from_wire(payload, GatewayRequest)
        except Exception as e:
            logger.warning(f"Gateway request event conversion failed for request {context.request_id}: {e}")
            return Failure.from_exception(e)
        logger.debug(f"Gateway request event conversion took: {millis_since(started)} millis")

        try:
            event = self.convert_input(request.body_bytes(), self.function.input_type)
        except Exception as e:
            logger.info(f"Request body rejected for request {context.request_id}: {e}")
            return Success(self.status_response(BadRequestException(f"Request body is invalid: {e}", cause=e)))

        try:
            output = self.invoke_function(event, context)
        except StatusException as e:
            logger.info(f"Function '{self.function.name}' responded with HTTP {e.http_code}: {e}")
            return Success(self.status_response(e))
        except Exception as e:
            logger.exception(f"Function '{self.function.name}' failed for request {context.request_id}")
            return Failure.from_exception(e)

        try:
            return Success(self.to_response(output))
        except Exception as e:
            logger.exception(f"Gateway response event conversion failed for request {context.request_id}")
            return Failure.from_exception(e)

    def to_response(self, output: Any) -> GatewayResponse:
        if output is None:
            return GatewayResponse(headers={})
        if isinstance(output, GatewayResponse):
            return output
        if isinstance(output, str):
            return GatewayResponse(body=output, headers={})
        if isinstance(output, (bytes, bytearray)):
            return GatewayResponse.of_bytes(bytes(output))
        return GatewayResponse(body=self.converter.to_wire(output).decode("utf-8"))

    @staticmethod
    def status_response(error: StatusException) -> GatewayResponse:
        body = json.dumps(ResponseCodec.failure_dict(error), ensure_ascii=False)
        return GatewayResponse(status_code=error.http_code, body=body)

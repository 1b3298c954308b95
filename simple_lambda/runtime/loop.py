# =============================================================================
# Invocation Loop
# =============================================================================
# poll -> dispatch -> respond, one invocation at a time, until stopped.
#
# Failure tiers:
# - per invocation: anything raised while dispatching or encoding is posted
#   to /invocation/{id}/error and the loop moves on
# - fatal: a malformed or failed fetch raises ProtocolError out of run()
# - reporting: a failed response/error POST is logged and the loop moves on
# =============================================================================

import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, MutableMapping, Optional, Tuple

from simple_lambda.handlers.base import EventHandler
from simple_lambda.runtime.codec import ResponseCodec
from simple_lambda.runtime.config import RuntimeConfig, RuntimeVariables
from simple_lambda.runtime.context import InvocationContext, RuntimeHeaders
from simple_lambda.runtime.endpoints import RuntimeEndpoints
from simple_lambda.runtime.errors import ProtocolError
from simple_lambda.runtime.http import RuntimeHttpClient
from simple_lambda.runtime.result import Failure, HandlerResult, Success

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    READY = "ready"
    FETCHING = "fetching"
    DISPATCHING = "dispatching"
    RESPONDING = "responding"
    STOPPED = "stopped"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Invocation:
    """One work item: the raw payload and the context describing it."""
    payload: bytes
    context: InvocationContext

    @property
    def request_id(self) -> str:
        return self.context.request_id


class InvocationLoop:
    """
    Drives the Runtime API protocol for a single bound event handler.

    Exactly one invocation is in flight at a time; every fetched invocation
    gets exactly one response or error POST, in fetch order.
    """

    def __init__(
        self,
        handler: EventHandler,
        http_client: RuntimeHttpClient,
        endpoints: RuntimeEndpoints,
        codec: ResponseCodec = None,
        config: RuntimeConfig = None,
        environ: MutableMapping[str, str] = None,
    ):
        self.handler = handler
        self.http_client = http_client
        self.endpoints = endpoints
        self.codec = codec or ResponseCodec(handler.converter)
        self.config = config
        self.environ = os.environ if environ is None else environ
        self.invocations = 0
        self._state = LoopState.READY
        self._running = False

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """
        Stop after the current iteration; no in-flight drain beyond it.

        A signal arriving while the long-poll GET is blocked does not
        interrupt it (PEP 475): the loop ends only after the next invocation
        has arrived and been fully served.
        """
        if self._running:
            logger.info("Invocation loop stop requested")
        self._running = False

    def run(self) -> None:
        """
        Serve invocations until stop() is called.

        Raises:
            ProtocolError: the control plane handed out unusable data; the
                loop is terminated and the process should exit
        """
        logger.debug(f"AWS Runtime Event provider at: {self.endpoints.next_invocation}")
        self._running = True
        try:
            while self._running:
                self.run_once()
        except ProtocolError:
            self._state = LoopState.TERMINATED
            raise
        finally:
            self._running = False
            if self._state != LoopState.TERMINATED:
                self._state = LoopState.STOPPED
        logger.info(f"Invocation loop stopped after {self.invocations} invocations")

    def run_once(self) -> HandlerResult:
        """Fetch, dispatch and respond to exactly one invocation."""
        invocation = self.fetch_next()
        result = self.dispatch(invocation)
        result = self.respond(invocation, result)
        self.invocations += 1
        self._state = LoopState.READY
        return result

    def fetch_next(self) -> Invocation:
        """
        Block on the long-poll GET for the next invocation.

        Raises:
            ProtocolError: transport failure, non-2xx answer, empty body
                or missing request id
        """
        self._state = LoopState.FETCHING
        try:
            response = self.http_client.get(self.endpoints.next_invocation)
        except Exception as e:
            raise ProtocolError(f"Next invocation could not be fetched: {e}") from e

        if not response.ok:
            raise ProtocolError(
                f"Next invocation answered with HTTP {response.status_code}: {response.body_as_string()}"
            )
        if not response.body:
            raise ProtocolError("Request body is not present!")

        context = InvocationContext.from_headers(response.headers, self.config)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"AWS Request Event received with {context}")
            for name, value in response.headers.items():
                logger.debug(f"Request header: {name} - {value}")
        return Invocation(payload=response.body, context=context)

    def dispatch(self, invocation: Invocation) -> HandlerResult:
        """Run the handler; nothing raised by it escapes this call."""
        self._state = LoopState.DISPATCHING
        self._export_trace_id(invocation.context.trace_id)
        try:
            result = self.handler.handle(invocation.payload, invocation.context)
        except Exception as e:
            logger.exception(f"Invocation error occurred for request {invocation.request_id}")
            return Failure.from_exception(e)
        if not isinstance(result, (Success, Failure)):
            logger.warning(f"Event handler returned {type(result).__name__}, treating it as a success payload")
            return Success(result)
        return result

    def respond(self, invocation: Invocation, result: HandlerResult) -> HandlerResult:
        """
        POST the outcome to the response or error endpoint.

        Returns the result that was actually reported: a success whose
        payload can not be encoded is reported, and returned, as a Failure.
        """
        self._state = LoopState.RESPONDING
        url, body, headers, result = self._encode(invocation, result)

        started = time.monotonic()
        try:
            response = self.http_client.post(url, body, headers)
        except Exception as e:
            logger.error(f"Responding to AWS invocation {invocation.request_id} failed: {e}")
            return result
        logger.info(f"Responding to AWS invocation took: {int((time.monotonic() - started) * 1000)} millis")

        if not response.ok:
            logger.warning(
                f"AWS invocation response: Http Code '{response.status_code}' and Body: {response.body_as_string()}"
            )
        else:
            logger.debug(f"AWS invocation response: Http Code '{response.status_code}'")
        return result

    def _encode(self, invocation: Invocation, result: HandlerResult) -> Tuple[str, bytes, Dict[str, str], HandlerResult]:
        if isinstance(result, Success):
            try:
                body = self.codec.encode_success(result.payload)
                return self.endpoints.response(invocation.request_id), body, {}, result
            except Exception as e:
                logger.exception(f"Response could not be encoded for request {invocation.request_id}")
                result = Failure.from_exception(e)

        body = self.codec.encode_failure(result)
        headers = {RuntimeHeaders.FUNCTION_ERROR_TYPE: _header_value(self.codec.failure_dict(result)["errorType"])}
        return self.endpoints.error(invocation.request_id), body, headers, result

    def _export_trace_id(self, trace_id: Optional[str]) -> None:
        if trace_id:
            self.environ[RuntimeVariables.TRACE_ID] = trace_id
        else:
            self.environ.pop(RuntimeVariables.TRACE_ID, None)


def _header_value(value: str) -> str:
    """Single-line, ASCII-only form of a header value."""
    value = " ".join(value.splitlines()).strip()
    return value.encode("ascii", errors="backslashreplace").decode("ascii")

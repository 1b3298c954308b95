# =============================================================================
# Runtime Bootstrap
# =============================================================================
# Builds the runtime context and the function exactly once, binds the event
# handler variant and runs the invocation loop. Any failure before or
# outside an invocation is reported once to /init/error and ends the process.
# =============================================================================

import logging
import os
import signal
import threading
import time
from typing import Any, Callable, MutableMapping, Optional

from simple_lambda.handlers.base import EventHandler
from simple_lambda.handlers.input_event import InputEventHandler
from simple_lambda.handlers.registry import get_event_handler
from simple_lambda.runtime.codec import ResponseCodec
from simple_lambda.runtime.config import RuntimeConfig, get_runtime_api
from simple_lambda.runtime.deps import RuntimeContext
from simple_lambda.runtime.endpoints import RuntimeEndpoints
from simple_lambda.runtime.errors import ConfigurationError, ContextException, LambdaException
from simple_lambda.runtime.http import RuntimeHttpClient
from simple_lambda.runtime.loop import InvocationLoop

logger = logging.getLogger(__name__)

FunctionFactory = Callable[[RuntimeContext], Callable[..., Any]]
ContextFactory = Callable[[RuntimeConfig], RuntimeContext]

EXIT_OK = 0
EXIT_FATAL = 1


class Bootstrap:
    """
    One-time runtime startup.

    Args:
        function_factory: called once with the RuntimeContext, returns the
            user function `(event, context) -> output`
        qualifier: event handler variant; falls back to the configured one
        context_factory: builds the dependency container from the config
        http_client_factory: builds the client used to report init errors
        environ: process environment
    """

    def __init__(
        self,
        function_factory: FunctionFactory,
        qualifier: Optional[str] = None,
        context_factory: ContextFactory = RuntimeContext,
        http_client_factory: Callable[[], RuntimeHttpClient] = RuntimeHttpClient,
        environ: MutableMapping[str, str] = None,
    ):
        self.function_factory = function_factory
        self.qualifier = qualifier
        self.context_factory = context_factory
        self.http_client_factory = http_client_factory
        self.environ = os.environ if environ is None else environ
        self.loop: Optional[InvocationLoop] = None
        self.endpoints: Optional[RuntimeEndpoints] = None

    def run(self) -> int:
        """Run until interrupted or a fatal error; returns the exit code."""
        try:
            runtime_api = get_runtime_api(self.environ)
        except ConfigurationError as e:
            # no control plane address, nowhere to report to
            logger.error(f"Runtime configuration error: {e}")
            return EXIT_FATAL

        self.endpoints = RuntimeEndpoints.from_api_address(runtime_api)
        logger.debug(f"AWS Runtime URI: {self.endpoints.base}")

        try:
            config = RuntimeConfig.from_environ(self.environ)
            started = time.monotonic()
            with self.context_factory(config) as context:
                self.loop = self.build_loop(config, context)
                logger.info(f"Context startup took: {int((time.monotonic() - started) * 1000)} millis")
                with _stop_on_sigterm(self.loop):
                    self.loop.run()
            return EXIT_OK
        except KeyboardInterrupt:
            logger.info("Runtime interrupted, shutting down")
            return EXIT_OK
        except Exception as e:
            logger.exception(f"Runtime failed: {e}")
            self.report_init_error(e)
            return EXIT_FATAL

    def build_loop(self, config: RuntimeConfig, context: RuntimeContext) -> InvocationLoop:
        handler = self.build_handler(config, context)
        return InvocationLoop(
            handler=handler,
            http_client=context.http_client,
            endpoints=self.endpoints,
            codec=ResponseCodec(context.converter),
            config=config,
            environ=self.environ,
        )

    def build_handler(self, config: RuntimeConfig, context: RuntimeContext) -> EventHandler:
        """Construct the function once and bind the event handler variant."""
        qualifier = self.qualifier or config.qualifier or InputEventHandler.QUALIFIER
        handler_type = get_event_handler(qualifier)

        try:
            function = self.function_factory(context)
        except LambdaException:
            raise
        except Exception as e:
            raise ContextException(f"Function could not be constructed due to: {e}") from e
        if function is None:
            raise ContextException("Function factory returned None")

        handler = handler_type(function, context.converter)
        logger.info(f"Bound {handler.function!r} to event handler '{qualifier}'")
        return handler

    def report_init_error(self, error: BaseException) -> None:
        """
        Best-effort POST to /init/error; a failure here is only logged.

        The runtime context is already closed at this point, so a fresh
        client is used.
        """
        if self.endpoints is None:
            return
        body = ResponseCodec().encode_failure(error)
        try:
            client = self.http_client_factory()
            client.post_and_forget(self.endpoints.init_error, body)
        except Exception:
            logger.exception("Init error could not be reported")


class _stop_on_sigterm:
    """Stop the loop after the current invocation on SIGTERM (main thread only)."""

    def __init__(self, loop: InvocationLoop):
        self.loop = loop
        self._previous = None

    def __enter__(self):
        if threading.current_thread() is threading.main_thread():
            self._previous = signal.signal(signal.SIGTERM, self._handle)
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._previous is not None:
            signal.signal(signal.SIGTERM, self._previous)

    def _handle(self, signum, frame):
        logger.info("SIGTERM received")
        self.loop.stop()


def run(function_factory: FunctionFactory, qualifier: Optional[str] = None, environ: MutableMapping[str, str] = None) -> int:
    """Convenience entrypoint: bootstrap and serve with default collaborators."""
    return Bootstrap(function_factory, qualifier=qualifier, environ=environ).run()

# =============================================================================
# CLI for the Lambda Runtime
# =============================================================================
# Serves a function against the Runtime API, or invokes it once locally
# through the same event handler and codec.
#
# Usage:
#   simple-lambda app.handler
#   simple-lambda app.handler --qualifier bodyEvent
#   simple-lambda app.build --factory
#   simple-lambda app.handler --event '{"name": "Ada"}' --pretty
#   simple-lambda app.handler --event-file event.json
# =============================================================================

import argparse
import importlib
import json
import logging
import os
import sys
import uuid
from typing import Any, Callable, List, Optional, Tuple

from simple_lambda.handlers.registry import get_event_handler, list_event_handlers
from simple_lambda.runtime.bootstrap import Bootstrap, EXIT_FATAL, EXIT_OK
from simple_lambda.runtime.codec import ResponseCodec
from simple_lambda.runtime.config import (
    DEFAULT_QUALIFIER,
    DEFAULT_REGION,
    RuntimeConfig,
    RuntimeVariables,
    configure_logging,
    get_log_level,
)
from simple_lambda.runtime.context import InvocationContext
from simple_lambda.runtime.convert import JsonConverter
from simple_lambda.runtime.deps import RuntimeContext
from simple_lambda.runtime.errors import ConfigurationError, ContextException, LambdaException
from simple_lambda.runtime.result import Failure, HandlerResult, Success

logger = logging.getLogger(__name__)


def load_handler(handler_path: str, task_root: str = "") -> Callable[..., Any]:
    """
    Import a function from a `module.function` or `module:function` path.

    Args:
        handler_path: e.g. "app.handler" or "pkg.app:handler"
        task_root: directory prepended to sys.path before importing

    Raises:
        ConfigurationError: handler_path is malformed
        ContextException: module or attribute can not be loaded
    """
    if not handler_path:
        raise ConfigurationError(f"No handler given and '{RuntimeVariables.HANDLER}' is not set")

    if ":" in handler_path:
        module_name, _, attr = handler_path.partition(":")
    else:
        module_name, _, attr = handler_path.rpartition(".")
    if not module_name or not attr:
        raise ConfigurationError(f"Bad handler '{handler_path}': expected 'module.function'")

    if task_root and task_root not in sys.path:
        sys.path.insert(0, task_root)

    try:
        module = importlib.import_module(module_name)
    except Exception as e:
        raise ContextException(f"Unable to import module '{module_name}': {e}") from e

    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise ContextException(f"Handler '{attr}' missing on module '{module_name}'")
    if not callable(target):
        raise ContextException(f"Handler '{handler_path}' is not callable")
    return target


def invoke_local(function: Callable[..., Any], payload: bytes, qualifier: str = DEFAULT_QUALIFIER,
                 request_id: str = None) -> Tuple[HandlerResult, bytes]:
    """Run one invocation without a control plane; returns the result and its wire body."""
    converter = JsonConverter()
    codec = ResponseCodec(converter)
    handler = get_event_handler(qualifier)(function, converter)
    context = InvocationContext.of_request_id(request_id or str(uuid.uuid4()))

    result = handler.handle(payload, context)
    if isinstance(result, Success):
        try:
            return result, codec.encode_success(result.payload)
        except LambdaException as e:
            failure = Failure.from_exception(e)
            return failure, codec.encode_failure(failure)
    return result, codec.encode_failure(result)


def build_parser() -> argparse.ArgumentParser:
    qualifiers = ", ".join(f"{q} ({d})" for q, d in list_event_handlers().items())
    parser = argparse.ArgumentParser(
        prog="simple-lambda",
        description="Custom AWS Lambda runtime",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Event handlers: {qualifiers}

Examples:
  %(prog)s app.handler
  %(prog)s app.handler --qualifier bodyEvent
  %(prog)s app.build --factory
  %(prog)s app.handler --event '{{"name": "Ada"}}' --pretty
        """
    )
    parser.add_argument("handler", nargs="?", help=f"Function as module.function (default: ${RuntimeVariables.HANDLER})")
    parser.add_argument("--qualifier", "-q", help=f"Event handler variant (default: ${RuntimeVariables.HANDLER_QUALIFIER} or {DEFAULT_QUALIFIER})")
    parser.add_argument("--factory", action="store_true",
                        help="Handler is a factory called once with the runtime context, returning the function")
    parser.add_argument("--log-level", "-l", help="Log level (default: $AWS_LAMBDA_LOG_LEVEL, $LOG_LEVEL or INFO)")
    parser.add_argument("--event", "-e", help="Invoke once locally with this JSON event and exit")
    parser.add_argument("--event-file", "-f", help="Invoke once locally with the event from this file and exit")
    parser.add_argument("--pretty", "-p", action="store_true", help="Pretty print local invocation output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or get_log_level())

    handler_path = args.handler or os.environ.get(RuntimeVariables.HANDLER, "")
    task_root = os.environ.get(RuntimeVariables.LAMBDA_TASK_ROOT, "")
    qualifier = args.qualifier or os.environ.get(RuntimeVariables.HANDLER_QUALIFIER) or DEFAULT_QUALIFIER

    try:
        target = load_handler(handler_path, task_root)
        get_event_handler(qualifier)
    except LambdaException as e:
        logger.error(str(e))
        # surface handler load failures on /init/error when running under Lambda
        if os.environ.get(RuntimeVariables.AWS_LAMBDA_RUNTIME_API) and args.event is None and args.event_file is None:
            bootstrap = Bootstrap(_raise_factory(e), qualifier=qualifier)
            return bootstrap.run()
        return EXIT_FATAL

    if args.event is not None or args.event_file is not None:
        if args.event_file:
            with open(args.event_file, "rb") as f:
                payload = f.read()
        else:
            payload = args.event.encode("utf-8")
        if args.factory:
            config = RuntimeConfig(
                runtime_api=os.environ.get(RuntimeVariables.AWS_LAMBDA_RUNTIME_API) or "localhost",
                region=os.environ.get(RuntimeVariables.REGION) or DEFAULT_REGION,
            )
            with RuntimeContext(config) as runtime_context:
                result, body = invoke_local(target(runtime_context), payload, qualifier)
        else:
            result, body = invoke_local(target, payload, qualifier)
        print(_format_body(body, args.pretty))
        return EXIT_OK if isinstance(result, Success) else EXIT_FATAL

    factory = target if args.factory else (lambda runtime_context: target)
    return Bootstrap(factory, qualifier=qualifier).run()


def _raise_factory(error: Exception):
    def factory(runtime_context):
        raise error
    return factory


def _format_body(body: bytes, pretty: bool) -> str:
    text = body.decode("utf-8", errors="replace")
    if not pretty:
        return text
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except json.JSONDecodeError:
        return text


if __name__ == "__main__":
    sys.exit(main())

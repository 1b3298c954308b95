# =============================================================================
# Event Handler Contract
# =============================================================================
# Every event handler variant accepts the raw invocation payload plus its
# InvocationContext and returns a HandlerResult. The invocation loop only
# ever talks to this interface.
# =============================================================================

import inspect
import logging
import time
import typing
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from simple_lambda.runtime.context import InvocationContext
from simple_lambda.runtime.convert import Converter, JsonConverter
from simple_lambda.runtime.errors import ContextException, ConversionException
from simple_lambda.runtime.result import HandlerResult

logger = logging.getLogger(__name__)

FunctionType = Callable[..., Any]


class RequestFunction:
    """
    User function plus the input type it declares.

    Functions take `(event, context)` like AWS handlers, or just `(event)`.
    The input type is the annotation of the first parameter, if any.
    """

    def __init__(self, function: FunctionType):
        if not callable(function):
            raise ContextException(f"Function must be callable, got {type(function).__name__}")
        self.function = function
        self.name = getattr(function, "__qualname__", None) or type(function).__name__
        self.input_type, self.takes_context = _inspect_function(function)

    def __call__(self, event: Any, context: InvocationContext) -> Any:
        if self.takes_context:
            return self.function(event, context)
        return self.function(event)

    def __repr__(self) -> str:
        input_name = getattr(self.input_type, "__name__", None) or repr(self.input_type)
        return f"RequestFunction({self.name}, input={input_name})"


class EventHandler(ABC):
    """Adapts one invocation payload to a call of the user function."""

    QUALIFIER: str = ""

    def __init__(self, function: FunctionType, converter: Converter = None):
        self.function = function if isinstance(function, RequestFunction) else RequestFunction(function)
        self.converter = converter or JsonConverter()

    @abstractmethod
    def handle(self, payload: bytes, context: InvocationContext) -> HandlerResult:
        """Process one payload; failures are returned as Failure, not raised."""

    def convert_input(self, data: bytes, input_type: Optional[type] = None) -> Any:
        """
        Decode raw bytes into the function's input type.

        bytes stays raw, str is decoded as UTF-8, any other annotation goes
        through the converter. Without an annotation the data is decoded as
        JSON when possible and handed over as text otherwise.
        """
        if input_type is bytes:
            return data
        if input_type is str:
            try:
                return data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ConversionException(f"Payload is not valid UTF-8: {e}") from e
        if input_type is None:
            if not data:
                return None
            try:
                return self.converter.from_wire(data)
            except ConversionException:
                return data.decode("utf-8", errors="replace")
        return self.converter.from_wire(data, input_type)

    def invoke_function(self, event: Any, context: InvocationContext) -> Any:
        logger.debug(f"Function '{self.function.name}' processing started")
        started = time.monotonic()
        output = self.function(event, context)
        logger.info(f"Function processing took: {millis_since(started)} millis")
        return output


def _inspect_function(function: FunctionType):
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return None, True

    # annotations of callable objects live on their __call__
    target = function if inspect.isroutine(function) else getattr(function, "__call__", function)

    params = [
        p for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    has_varargs = any(p.kind == p.VAR_POSITIONAL for p in signature.parameters.values())
    if not params and not has_varargs:
        raise ContextException("Function must accept the event as its first argument")
    takes_context = has_varargs or len(params) >= 2

    input_type = None
    if params:
        try:
            hints = typing.get_type_hints(target)
        except Exception:
            hints = {}
        input_type = hints.get(params[0].name)
        if input_type is Any:
            input_type = None
    return input_type, takes_context


def millis_since(started: float) -> int:
    return int((time.monotonic() - started) * 1000)

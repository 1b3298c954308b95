#!/usr/bin/env python3
"""
Tests for the event handler variants and their registry.

Run with: pytest tests/test_handlers.py -v
"""
import base64
import json
from dataclasses import dataclass
from typing import Optional

import pytest

from conftest import hello_world


def ctx(request_id="req-1"):
    from simple_lambda.runtime.context import InvocationContext
    return InvocationContext.of_request_id(request_id)


def gateway_event(body, is_base64_encoded=False, **extra):
    event = {"body": body, "isBase64Encoded": is_base64_encoded, "httpMethod": "POST", "path": "/hello"}
    event.update(extra)
    return json.dumps(event).encode("utf-8")


@dataclass
class Greeting:
    name: str
    title: Optional[str] = None


# =============================================================================
# TEST: Registry
# =============================================================================

class TestRegistry:
    """Closed set of variants keyed by qualifier."""

    def test_builtin_variants_registered(self):
        from simple_lambda.handlers import (
            BodyEventHandler,
            InputEventHandler,
            event_handler_exists,
            get_event_handler,
            list_event_handlers,
        )

        assert get_event_handler("inputEvent") is InputEventHandler
        assert get_event_handler("bodyEvent") is BodyEventHandler
        assert event_handler_exists("bodyEvent")
        assert not event_handler_exists("BodyEvent")
        assert set(list_event_handlers()) >= {"inputEvent", "bodyEvent"}
        print("✓ inputEvent and bodyEvent registered")

    def test_unknown_qualifier(self):
        from simple_lambda.handlers import get_event_handler
        from simple_lambda.runtime.errors import ConfigurationError

        with pytest.raises(ConfigurationError, match="Available: bodyEvent, inputEvent"):
            get_event_handler("sqsEvent")
        print("✓ Unknown qualifier lists the available variants")

    def test_decorator_sets_qualifier(self):
        from simple_lambda.handlers import InputEventHandler, list_event_handlers

        assert InputEventHandler.QUALIFIER == "inputEvent"
        assert list_event_handlers()["inputEvent"] == "Raw event in, function output out."
        print("✓ Registry metadata taken from the class docstring")


# =============================================================================
# TEST: Function inspection
# =============================================================================

class TestRequestFunction:
    """Arity and input type detection."""

    def test_two_argument_function(self):
        from simple_lambda.handlers import RequestFunction

        function = RequestFunction(hello_world)
        assert function.takes_context
        assert function.input_type is None
        assert function({"name": "Ada"}, ctx()) == {"greeting": "Hello - Ada"}

    def test_event_only_function(self):
        from simple_lambda.handlers import RequestFunction

        def shout(event: str):
            return event.upper()

        function = RequestFunction(shout)
        assert not function.takes_context
        assert function.input_type is str
        assert function("hi", ctx()) == "HI"

    def test_callable_object(self):
        from simple_lambda.handlers import RequestFunction

        class Greeter:
            def __call__(self, event: Greeting, context):
                return event.name

        function = RequestFunction(Greeter())
        assert function.input_type is Greeting
        assert function.takes_context

    def test_rejects_non_callable_and_no_arguments(self):
        from simple_lambda.handlers import RequestFunction
        from simple_lambda.runtime.errors import ContextException

        with pytest.raises(ContextException):
            RequestFunction("not a function")
        with pytest.raises(ContextException, match="first argument"):
            RequestFunction(lambda: None)
        print("✓ Invalid functions rejected at bind time")


# =============================================================================
# TEST: inputEvent
# =============================================================================

class TestInputEventHandler:
    """Raw event passthrough."""

    def test_success(self):
        from simple_lambda.handlers import InputEventHandler
        from simple_lambda.runtime.result import Success

        result = InputEventHandler(hello_world).handle(b'{"name": "Ada"}', ctx())

        assert result == Success({"greeting": "Hello - Ada"})
        print("✓ Output wrapped in Success")

    def test_function_exception_becomes_failure(self):
        from simple_lambda.handlers import InputEventHandler
        from simple_lambda.runtime.errors import ValidationException
        from simple_lambda.runtime.result import Failure

        def validating(event, context):
            raise ValidationException("name is required")

        result = InputEventHandler(validating).handle(b"{}", ctx())

        assert isinstance(result, Failure)
        assert result.kind == "ValidationException"
        assert result.message == "name is required"
        assert isinstance(result.cause, ValidationException)
        print("✓ Function exception converted to Failure")

    def test_typed_input_converted(self):
        from simple_lambda.handlers import InputEventHandler

        def greet(event: Greeting, context):
            return f"{event.title or 'Dear'} {event.name}"

        result = InputEventHandler(greet).handle(b'{"name": "Ada", "title": "Countess"}', ctx())

        assert result.payload == "Countess Ada"

    def test_typed_input_mismatch_is_failure(self):
        from simple_lambda.handlers import InputEventHandler

        def greet(event: Greeting, context):
            return event.name

        result = InputEventHandler(greet).handle(b'["not", "an", "object"]', ctx())

        assert not result.is_success
        assert result.kind == "ConversionException"

    @pytest.mark.parametrize("payload, expected", [
        (b'{"a": 1}', {"a": 1}),
        (b"[1, 2]", [1, 2]),
        (b'"text"', "text"),
        (b"42", 42),
        (b"plain text", "plain text"),
        (b"", None),
    ])
    def test_untyped_input(self, payload, expected):
        from simple_lambda.handlers import InputEventHandler

        result = InputEventHandler(lambda event, context: event).handle(payload, ctx())

        assert result.payload == expected

    def test_bytes_and_str_inputs(self):
        from simple_lambda.handlers import InputEventHandler

        def raw(event: bytes, context):
            return len(event)

        def text(event: str, context):
            return event

        assert InputEventHandler(raw).handle(b"\x00\x01", ctx()).payload == 2
        assert InputEventHandler(text).handle('{"é": 1}'.encode("utf-8"), ctx()).payload == '{"é": 1}'
        assert InputEventHandler(text).handle(b"\xff", ctx()).kind == "ConversionException"


# =============================================================================
# TEST: bodyEvent
# =============================================================================

class TestBodyEventHandler:
    """API Gateway proxy adaptation."""

    def test_success_wraps_json_body(self):
        from simple_lambda.handlers import BodyEventHandler
        from simple_lambda.events import GatewayResponse

        result = BodyEventHandler(hello_world).handle(gateway_event('{"name": "Ada"}'), ctx())

        response = result.payload
        assert isinstance(response, GatewayResponse)
        assert response.status_code == 200
        assert response.headers == {"Content-Type": "application/json"}
        assert json.loads(response.body) == {"greeting": "Hello - Ada"}
        print("✓ Function output wrapped in a 200 response")

    def test_base64_body(self):
        from simple_lambda.handlers import BodyEventHandler

        body = base64.b64encode(b'{"name": "Bob"}').decode("ascii")
        result = BodyEventHandler(hello_world).handle(gateway_event(body, is_base64_encoded=True), ctx())

        assert json.loads(result.payload.body) == {"greeting": "Hello - Bob"}

    def test_bad_base64_body_is_400(self):
        from simple_lambda.handlers import BodyEventHandler

        result = BodyEventHandler(hello_world).handle(gateway_event("***", is_base64_encoded=True), ctx())

        assert result.is_success
        assert result.payload.status_code == 400
        assert json.loads(result.payload.body)["errorType"] == "BadRequestException"

    def test_typed_body_mismatch_is_400(self):
        from simple_lambda.handlers import BodyEventHandler

        def greet(event: Greeting, context):
            return event.name

        result = BodyEventHandler(greet).handle(gateway_event('{"title": "Dr"}'), ctx())

        assert result.payload.status_code == 400
        print("✓ Body not matching the input type answered with 400")

    def test_status_exception_becomes_status_response(self):
        from simple_lambda.handlers import BodyEventHandler
        from simple_lambda.runtime.errors import StatusException, ValidationException

        def missing(event, context):
            raise StatusException("order not found", http_code=404)

        def invalid(event, context):
            raise ValidationException("name is required")

        not_found = BodyEventHandler(missing).handle(gateway_event("{}"), ctx()).payload
        bad_request = BodyEventHandler(invalid).handle(gateway_event("{}"), ctx()).payload

        assert not_found.status_code == 404
        assert json.loads(not_found.body) == {"errorMessage": "order not found", "errorType": "StatusException"}
        assert bad_request.status_code == 400
        assert json.loads(bad_request.body)["errorType"] == "ValidationException"
        print("✓ StatusException mapped to its HTTP code")

    def test_other_exception_is_failure(self):
        from simple_lambda.handlers import BodyEventHandler

        def broken(event, context):
            raise RuntimeError("db down")

        result = BodyEventHandler(broken).handle(gateway_event("{}"), ctx())

        assert not result.is_success
        assert result.kind == "RuntimeError"

    def test_non_gateway_payload_is_failure(self):
        from simple_lambda.handlers import BodyEventHandler

        assert BodyEventHandler(hello_world).handle(b"[1, 2]", ctx()).kind == "ConversionException"
        assert BodyEventHandler(hello_world).handle(b"not json", ctx()).kind == "ConversionException"
        assert BodyEventHandler(hello_world).handle(b'{"body": 5}', ctx()).kind == "ConversionException"

    def test_output_shapes(self):
        from simple_lambda.handlers import BodyEventHandler
        from simple_lambda.events import GatewayResponse

        handler = BodyEventHandler(hello_world)
        custom = GatewayResponse(status_code=201, body="created", headers={"Location": "/orders/1"})

        assert handler.to_response(None) == GatewayResponse(headers={})
        assert handler.to_response(custom) is custom
        assert handler.to_response("plain") == GatewayResponse(body="plain", headers={})
        binary = handler.to_response(b"\x89PNG")
        assert binary.is_base64_encoded
        assert base64.b64decode(binary.body) == b"\x89PNG"
        assert json.loads(handler.to_response([1, 2]).body) == [1, 2]

    def test_response_encodes_as_proxy_envelope(self):
        from simple_lambda.handlers import BodyEventHandler
        from simple_lambda.runtime.codec import ResponseCodec

        result = BodyEventHandler(hello_world).handle(gateway_event('{"name": "Ada"}'), ctx())
        wire = json.loads(ResponseCodec().encode_success(result.payload))

        assert set(wire) == {"statusCode", "headers", "body", "isBase64Encoded"}
        assert wire["statusCode"] == 200
        print("✓ Gateway response serialized with camelCase keys")

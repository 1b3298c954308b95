# =============================================================================
# Converter
# =============================================================================
# JSON (de)serialization of payloads between the wire and Python values.
# =============================================================================

import dataclasses
import json
import typing
from typing import Any, Dict, Optional, Type, Union

from simple_lambda.runtime.errors import ConversionException

WireData = Union[bytes, bytearray, str]

_JSON_TYPES = (dict, list, str, int, float, bool)


class Converter:
    """Interface for payload conversion."""

    def to_wire(self, value: Any) -> bytes:
        raise NotImplementedError

    def from_wire(self, data: WireData, type_: Optional[Type] = None) -> Any:
        raise NotImplementedError


class JsonConverter(Converter):
    """
    Converter backed by the json module.

    Supports JSON types, dataclasses (recursively) and classes exposing
    `to_dict()` / `from_dict(dict)`.
    """

    def __init__(self, ensure_ascii: bool = False):
        self.ensure_ascii = ensure_ascii

    def to_wire(self, value: Any) -> bytes:
        try:
            text = json.dumps(self.to_jsonable(value), ensure_ascii=self.ensure_ascii, default=str, allow_nan=False)
        except (TypeError, ValueError, RecursionError) as e:
            raise ConversionException(f"Value of type {type(value).__name__} can not be converted to JSON: {e}") from e
        return text.encode("utf-8")

    def from_wire(self, data: WireData, type_: Optional[Type] = None) -> Any:
        """
        Decode wire data, optionally into a specific type.

        Args:
            data: JSON document as bytes or text
            type_: target type; None or Any returns the plain decoded value

        Raises:
            ConversionException: data is not JSON or does not fit `type_`
        """
        if isinstance(data, (bytes, bytearray)):
            try:
                data = bytes(data).decode("utf-8")
            except UnicodeDecodeError as e:
                raise ConversionException(f"Payload is not valid UTF-8: {e}") from e
        try:
            decoded = json.loads(data)
        except json.JSONDecodeError as e:
            raise ConversionException(f"Payload is not valid JSON: {e}") from e
        return self.from_jsonable(decoded, type_)

    def to_jsonable(self, value: Any) -> Any:
        if hasattr(value, "to_dict") and callable(value.to_dict):
            return value.to_dict()
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {f.name: self.to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
        if isinstance(value, dict):
            return {str(k): self.to_jsonable(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.to_jsonable(v) for v in value]
        return value

    def from_jsonable(self, value: Any, type_: Optional[Type] = None) -> Any:
        if type_ is None or type_ is Any or type_ is object:
            return value

        origin = typing.get_origin(type_)
        if origin is Union:
            args = [a for a in typing.get_args(type_) if a is not type(None)]
            if value is None:
                return None
            return self.from_jsonable(value, args[0] if len(args) == 1 else None)
        if origin in (list, dict):
            return self._check(value, origin)

        if hasattr(type_, "from_dict") and callable(type_.from_dict):
            return type_.from_dict(self._check(value, dict))
        if dataclasses.is_dataclass(type_):
            return self._to_dataclass(value, type_)
        if type_ is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if type_ in _JSON_TYPES:
            return self._check(value, type_)
        raise ConversionException(f"Unsupported conversion type: {type_!r}")

    def _to_dataclass(self, value: Any, type_: Type) -> Any:
        data: Dict[str, Any] = self._check(value, dict)
        try:
            hints = typing.get_type_hints(type_)
        except Exception:
            hints = {}
        kwargs = {}
        for f in dataclasses.fields(type_):
            if not f.init or f.name not in data:
                continue
            kwargs[f.name] = self.from_jsonable(data[f.name], hints.get(f.name))
        try:
            return type_(**kwargs)
        except TypeError as e:
            raise ConversionException(f"Payload does not match {type_.__name__}: {e}") from e

    @staticmethod
    def _check(value: Any, type_: Type) -> Any:
        if type_ in (int, float) and isinstance(value, bool):
            raise ConversionException(f"Expected {type_.__name__}, got bool")
        if not isinstance(value, type_):
            raise ConversionException(f"Expected {type_.__name__}, got {type(value).__name__}")
        return value

# =============================================================================
# Runtime Errors
# =============================================================================
# Exception hierarchy shared by the runtime and user functions.
#
# Fatal (init-class): ConfigurationError, ContextException, ProtocolError
# Per-invocation:     ConversionException, StatusException and subclasses
# =============================================================================

from typing import Optional


class LambdaException(Exception):
    """Base class for all errors raised by the runtime."""


class ConfigurationError(LambdaException):
    """Process configuration is missing or invalid."""


class ContextException(LambdaException):
    """The runtime context or the user function could not be constructed."""


class ProtocolError(LambdaException):
    """The control plane returned data the runtime cannot work with."""


class ConversionException(LambdaException):
    """A payload could not be converted to or from its wire form."""


class StatusException(LambdaException):
    """
    Business failure carrying an HTTP status code.

    Gateway-style event handlers turn this into a status-coded response
    envelope instead of an invocation error.
    """

    def __init__(self, message: str, http_code: int = 500, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.http_code = http_code
        if cause is not None:
            self.__cause__ = cause


class BadRequestException(StatusException):
    """Request input was rejected (HTTP 400)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, 400, cause)


class ValidationException(BadRequestException):
    """Request input failed validation (HTTP 400)."""

# =============================================================================
# Event Handler Registry
# =============================================================================
# Closed set of event handler variants keyed by a static qualifier.
# The variant is picked once at bootstrap, never per invocation.
# =============================================================================

import logging
from typing import Dict, Type

from simple_lambda.handlers.base import EventHandler
from simple_lambda.runtime.errors import ConfigurationError

logger = logging.getLogger(__name__)

_EVENT_HANDLERS: Dict[str, Type[EventHandler]] = {}
_EVENT_HANDLER_METADATA: Dict[str, Dict[str, str]] = {}


def register_event_handler(qualifier: str, description: str = None):
    """
    Decorator to register an event handler variant.

    Usage:
        @register_event_handler("inputEvent")
        class InputEventHandler(EventHandler):
            ...
    """
    def decorator(cls: Type[EventHandler]) -> Type[EventHandler]:
        desc = description
        if not desc and cls.__doc__:
            desc = cls.__doc__.strip().split("\n")[0].strip()

        cls.QUALIFIER = qualifier
        _EVENT_HANDLERS[qualifier] = cls
        _EVENT_HANDLER_METADATA[qualifier] = {
            "description": desc or f"{cls.__name__} event handler",
            "module": cls.__module__,
            "class": cls.__name__,
        }
        return cls
    return decorator


def get_event_handler(qualifier: str) -> Type[EventHandler]:
    """
    Get the event handler class for a qualifier.

    Raises:
        ConfigurationError: no variant is registered under the qualifier
    """
    handler = _EVENT_HANDLERS.get(qualifier)
    if handler is None:
        raise ConfigurationError(
            f"Unknown event handler qualifier: '{qualifier}'. "
            f"Available: {', '.join(sorted(_EVENT_HANDLERS))}"
        )
    return handler


def event_handler_exists(qualifier: str) -> bool:
    return qualifier in _EVENT_HANDLERS


def list_event_handlers() -> Dict[str, str]:
    """List all event handler variants with descriptions."""
    return {qualifier: meta["description"] for qualifier, meta in sorted(_EVENT_HANDLER_METADATA.items())}

# =============================================================================
# Handler Result
# =============================================================================
# Tagged outcome of one dispatch: Success(payload) | Failure(kind, message).
# Produced once per invocation, consumed once by the codec.
# =============================================================================

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Success:
    payload: Any = None

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: str
    message: str
    cause: Optional[BaseException] = None

    @property
    def is_success(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: BaseException) -> "Failure":
        """Failure labelled with the exception class name."""
        try:
            message = str(exc)
        except Exception:
            message = ""
        return cls(kind=type(exc).__name__, message=message, cause=exc)


HandlerResult = Union[Success, Failure]

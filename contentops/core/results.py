"""
Operation results

Every console operation that can fail returns an ``OperationResult`` instead
of raising, so callers (the UI layer) decide how to present the outcome.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar('T')


class FailureReason(Enum):
    """Why an operation did not succeed"""
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    PERSISTENCE_ERROR = "persistence_error"
    NETWORK_ERROR = "network_error"
    HTTP_ERROR = "http_error"
    MISSING_CREDENTIAL = "missing_credential"
    NOT_AUTHENTICATED = "not_authenticated"
    EMPTY_RESULT = "empty_result"
    MISSING_BINDING = "missing_binding"
    NO_ENDPOINT = "no_endpoint"
    TERMINAL_STATUS = "terminal_status"
    # External workflow ran but the follow-up local write failed
    INCONSISTENT = "inconsistent"


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Outcome of a console operation"""
    success: bool
    value: Optional[T] = None
    reason: Optional[FailureReason] = None
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, value: Any = None, message: Optional[str] = None) -> "OperationResult":
        return cls(success=True, value=value, message=message)

    @classmethod
    def fail(cls, reason: FailureReason, message: Optional[str] = None) -> "OperationResult":
        return cls(success=False, reason=reason, message=message)

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class OrderDeskError(Exception):
    """Base class for errors raised by the order engines and the order book."""


class TransitionRejection(str, Enum):
    """Why a status change was refused, in the order the checks run."""
    SAME_STATUS = "same_status"
    TERMINAL_STATE = "terminal_state"
    NOT_ALLOWED = "not_allowed"


class InvalidTransitionError(OrderDeskError):
    """
    A well-formed status change the state machine refuses.
    Always recoverable: surfaced to the caller as HTTP 400.
    """

    def __init__(self, current: Any, requested: Any, reason: TransitionRejection, message: str):
        self.current = current
        self.requested = requested
        self.reason = reason
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "reason": self.reason.value,
            "currentStatus": getattr(self.current, "value", self.current),
            "requestedStatus": getattr(self.requested, "value", self.requested),
        }


class InvalidInputError(OrderDeskError, ValueError):
    """
    Caller contract violation: unknown status value, negative price, empty item list...
    Callers validate shape first, so reaching this means an upstream validation gap.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class OrderNotFoundError(OrderDeskError, KeyError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(order_id)

    def __str__(self) -> str:
        return f"Order '{self.order_id}' not found"


class InvalidCursorError(OrderDeskError, ValueError):
    """Pagination cursor that does not decode or points outside the filtered result."""

# orderdesk/app/services/status_transitions.py
"""
Order status state machine.

The adjacency table is the single source of truth for which status changes are
legal. A secondary linear "happy path" (pending -> processing -> shipped -> delivered)
is used only for navigation helpers and history paths; it never grants a transition.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from orderdesk.app.core.errors import (
    InvalidInputError,
    InvalidTransitionError,
    TransitionRejection,
)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


StatusLike = Union[OrderStatus, str]


@dataclass(frozen=True)
class StatusMetadata:
    label: str
    color: str  # success | warning | info | danger
    description: str


@dataclass(frozen=True)
class StatusRules:
    """Read-only rule set the engine is built from."""
    transitions: Mapping[OrderStatus, Tuple[OrderStatus, ...]]
    metadata: Mapping[OrderStatus, StatusMetadata]
    happy_path: Tuple[OrderStatus, ...]


# -----------------------------------------------------------------------------
# Fixed tables
# -----------------------------------------------------------------------------

STATUS_TRANSITIONS: Mapping[OrderStatus, Tuple[OrderStatus, ...]] = MappingProxyType({
    OrderStatus.PENDING: (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    OrderStatus.PROCESSING: (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
    OrderStatus.SHIPPED: (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
    OrderStatus.DELIVERED: (OrderStatus.CANCELLED,),  # returns/refunds
    OrderStatus.CANCELLED: (),  # terminal
})

STATUS_METADATA: Mapping[OrderStatus, StatusMetadata] = MappingProxyType({
    OrderStatus.PENDING: StatusMetadata("Pending", "warning", "Order received, awaiting processing"),
    OrderStatus.PROCESSING: StatusMetadata("Processing", "info", "Order is being prepared"),
    OrderStatus.SHIPPED: StatusMetadata("Shipped", "info", "Order has been shipped"),
    OrderStatus.DELIVERED: StatusMetadata("Delivered", "success", "Order has been delivered"),
    OrderStatus.CANCELLED: StatusMetadata("Cancelled", "danger", "Order has been cancelled"),
})

HAPPY_PATH: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

DEFAULT_STATUS_RULES = StatusRules(
    transitions=STATUS_TRANSITIONS,
    metadata=STATUS_METADATA,
    happy_path=HAPPY_PATH,
)


def parse_status(value: Any) -> OrderStatus:
    """Coerce a raw value to OrderStatus; anything else is a caller error."""
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str):
        try:
            return OrderStatus(value)
        except ValueError:
            pass
    raise InvalidInputError(f"Unknown order status: {value!r}", field="status")


@dataclass(frozen=True)
class TransitionResult:
    current: OrderStatus
    requested: OrderStatus
    valid: bool
    reason: Optional[TransitionRejection] = None
    error: Optional[str] = None

    def raise_for_error(self) -> None:
        if not self.valid:
            raise InvalidTransitionError(self.current, self.requested, self.reason, self.error)


class StatusTransitionEngine:
    def __init__(self, rules: StatusRules = DEFAULT_STATUS_RULES):
        self.rules = rules
        self._allowed: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
            status: frozenset(targets) for status, targets in rules.transitions.items()
        }
        self._order: Dict[OrderStatus, int] = {s: i for i, s in enumerate(rules.transitions)}

    # ---- queries ----

    def get_all_statuses(self) -> List[OrderStatus]:
        return list(self.rules.transitions)

    def get_metadata(self, status: StatusLike) -> StatusMetadata:
        return self.rules.metadata[parse_status(status)]

    def label(self, status: StatusLike) -> str:
        return self.get_metadata(status).label

    def get_allowed_transitions(self, current: StatusLike) -> FrozenSet[OrderStatus]:
        return self._allowed[parse_status(current)]

    def ordered(self, statuses: Iterable[OrderStatus]) -> List[OrderStatus]:
        """Sort statuses in table declaration order (stable output for messages/JSON)."""
        return sorted(statuses, key=self._order.__getitem__)

    def is_valid_transition(self, current: StatusLike, new: StatusLike) -> bool:
        current, new = parse_status(current), parse_status(new)
        if current == new:
            return False
        return new in self._allowed[current]

    def is_terminal_status(self, status: StatusLike) -> bool:
        return not self._allowed[parse_status(status)]

    def can_be_cancelled(self, status: StatusLike) -> bool:
        return OrderStatus.CANCELLED in self._allowed[parse_status(status)]

    # ---- validation ----

    def validate_transition(self, current: StatusLike, new: StatusLike) -> TransitionResult:
        """
        Ordered checks, first failure wins:
          1. same status
          2. current status is terminal
          3. target not in the adjacency entry
        """
        current, new = parse_status(current), parse_status(new)

        if current == new:
            return TransitionResult(
                current, new, False, TransitionRejection.SAME_STATUS,
                "Order is already in this status",
            )

        if self.is_terminal_status(current):
            return TransitionResult(
                current, new, False, TransitionRejection.TERMINAL_STATE,
                f"Cannot change status of a {current.value} order",
            )

        allowed = self._allowed[current]
        if new not in allowed:
            allowed_labels = ", ".join(self.label(s) for s in self.ordered(allowed))
            return TransitionResult(
                current, new, False, TransitionRejection.NOT_ALLOWED,
                f"Cannot transition from {self.label(current)} to {self.label(new)}. "
                f"Allowed: {allowed_labels}",
            )

        return TransitionResult(current, new, True)

    def ensure_transition(self, current: StatusLike, new: StatusLike) -> TransitionResult:
        result = self.validate_transition(current, new)
        result.raise_for_error()
        return result

    # ---- happy path navigation ----

    def get_next_status(self, current: StatusLike) -> Optional[OrderStatus]:
        current = parse_status(current)
        path = self.rules.happy_path
        if current not in path:
            return None
        idx = path.index(current)
        return path[idx + 1] if idx + 1 < len(path) else None

    def get_previous_status(self, current: StatusLike) -> Optional[OrderStatus]:
        current = parse_status(current)
        path = self.rules.happy_path
        if current not in path:
            return None
        idx = path.index(current)
        return path[idx - 1] if idx > 0 else None

    def get_status_path(self, target: StatusLike) -> List[OrderStatus]:
        target = parse_status(target)
        if target == OrderStatus.CANCELLED:
            return [OrderStatus.CANCELLED]
        path = self.rules.happy_path
        if target not in path:
            return []
        return list(path[: path.index(target) + 1])

    def describe(self, status: StatusLike) -> Dict[str, Any]:
        """Everything a status-change control needs to render for one status."""
        status = parse_status(status)
        meta = self.rules.metadata[status]
        nxt = self.get_next_status(status)
        prev = self.get_previous_status(status)
        return {
            "status": status.value,
            "label": meta.label,
            "color": meta.color,
            "description": meta.description,
            "allowedTransitions": [s.value for s in self.ordered(self._allowed[status])],
            "isTerminal": self.is_terminal_status(status),
            "canBeCancelled": self.can_be_cancelled(status),
            "nextStatus": nxt.value if nxt else None,
            "previousStatus": prev.value if prev else None,
        }


status_engine = StatusTransitionEngine()

# module-level shortcuts bound to the default rules
get_all_statuses = status_engine.get_all_statuses
get_allowed_transitions = status_engine.get_allowed_transitions
is_valid_transition = status_engine.is_valid_transition
validate_transition = status_engine.validate_transition
ensure_transition = status_engine.ensure_transition
is_terminal_status = status_engine.is_terminal_status
can_be_cancelled = status_engine.can_be_cancelled
get_next_status = status_engine.get_next_status
get_previous_status = status_engine.get_previous_status
get_status_path = status_engine.get_status_path

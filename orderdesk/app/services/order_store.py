# orderdesk/app/services/order_store.py
from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from orderdesk.app.core.config import settings
from orderdesk.app.core.errors import InvalidTransitionError, OrderNotFoundError
from orderdesk.app.core.metrics import status_updates, transition_rejections
from orderdesk.app.models.order import Order, StatusHistoryEntry
from orderdesk.app.services.seed_data import generate_orders
from orderdesk.app.services.status_transitions import (
    OrderStatus,
    StatusLike,
    StatusTransitionEngine,
    parse_status,
    status_engine,
)

log = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OrderStore:
    """
    Orders held in process memory, keyed by id, iterated in insertion order.
    Status changes are validated and applied under one lock so two concurrent
    updates to the same order cannot both pass validation.
    """

    def __init__(self, orders: Iterable[Order] = (), engine: StatusTransitionEngine = status_engine):
        self.engine = engine
        self._lock = threading.Lock()
        self._orders: Dict[str, Order] = {}
        for o in orders:
            self.add(o)

    def __len__(self) -> int:
        return len(self._orders)

    def list(self) -> List[Order]:
        with self._lock:
            return list(self._orders.values())

    def get(self, order_id: str) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def add(self, order: Order) -> None:
        with self._lock:
            if order.id in self._orders:
                raise ValueError(f"Order '{order.id}' already exists")
            self._orders[order.id] = order

    def count_by_status(self) -> Dict[str, int]:
        with self._lock:
            counts = Counter(o.status.value for o in self._orders.values())
        return {s.value: counts.get(s.value, 0) for s in self.engine.get_all_statuses()}

    def update_status(
        self,
        order_id: str,
        new_status: StatusLike,
        *,
        actor: str,
        note: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> Order:
        """
        Validate and apply one status change, prepending a history entry.
        Raises OrderNotFoundError or InvalidTransitionError; nothing is written on failure.
        """
        new_status = parse_status(new_status)
        with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                status_updates.inc({"result": "not_found"})
                raise OrderNotFoundError(order_id)

            result = self.engine.validate_transition(current.status, new_status)
            if not result.valid:
                status_updates.inc({"result": "rejected"})
                transition_rejections.inc({"reason": result.reason.value})
                log.info(
                    "status change rejected order=%s from=%s to=%s reason=%s",
                    order_id, current.status.value, new_status.value, result.reason.value,
                )
                raise InvalidTransitionError(result.current, result.requested, result.reason, result.error)

            entry = StatusHistoryEntry(
                status=new_status,
                timestamp=at or _now(),
                updated_by=actor,
                note=note or None,
            )
            updated = current.model_copy(update={
                "status": new_status,
                "status_history": [entry, *current.status_history],
            })
            self._orders[order_id] = updated

        status_updates.inc({"result": "applied"})
        log.info(
            "status changed order=%s from=%s to=%s by=%s",
            order_id, current.status.value, new_status.value, actor,
        )
        return updated


# -----------------------------------------------------------------------------
# Process-wide store
# -----------------------------------------------------------------------------

_STORE: Optional[OrderStore] = None
_STORE_LOCK = threading.Lock()


def _new_store(count: int, seed: int) -> OrderStore:
    orders = generate_orders(count, seed=seed)
    log.info("seeded order book with %d orders (seed=%d)", len(orders), seed)
    return OrderStore(orders)


def get_store() -> OrderStore:
    global _STORE
    with _STORE_LOCK:
        if _STORE is None:
            _STORE = _new_store(settings.seed_order_count, settings.seed_random_seed)
        return _STORE


def reset_store(orders: Optional[Iterable[Order]] = None) -> OrderStore:
    """
    Replace the process-wide store. With no orders given, reseed from settings.
    Useful for tests.
    """
    global _STORE
    with _STORE_LOCK:
        if orders is None:
            _STORE = _new_store(settings.seed_order_count, settings.seed_random_seed)
        else:
            _STORE = OrderStore(orders)
        return _STORE

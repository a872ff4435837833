# orderdesk/app/api/routes_orders.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Header, Path as PathParam, Query

from orderdesk.app.core.config import settings
from orderdesk.app.core.errors import InvalidTransitionError, OrderNotFoundError
from orderdesk.app.core.metrics import order_list_duration
from orderdesk.app.models.order import (
    BulkFailure,
    BulkStatusUpdateRequest,
    BulkStatusUpdateResult,
    Order,
    OrderDetail,
    OrderFilters,
    OrderTotalsOut,
    StatusUpdateRequest,
    dump,
)
from orderdesk.app.services.order_metrics import compute_order_metrics
from orderdesk.app.services.order_query import Direction, filter_orders, paginate
from orderdesk.app.services.order_store import get_store
from orderdesk.app.services.order_totals import totals_engine
from orderdesk.app.services.status_transitions import OrderStatus, status_engine

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["orders"])


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _detail(order: Order) -> Dict[str, Any]:
    totals = totals_engine.calculate_order_totals(order.items)
    detail = OrderDetail(
        **order.model_dump(),
        totals=OrderTotalsOut(**totals.to_dict()),
        allowed_transitions=status_engine.ordered(status_engine.get_allowed_transitions(order.status)),
        is_terminal=status_engine.is_terminal_status(order.status),
    )
    return dump(detail)


def _actor(x_actor: Optional[str]) -> str:
    actor = (x_actor or "").strip()
    return actor or settings.default_actor


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

@router.get("/orders")
def list_orders(
    status: Optional[OrderStatus] = Query(default=None, description="Exact status"),
    search: Optional[str] = Query(default=None, description="Free text over id, customer name and email"),
    date_from: Optional[date] = Query(default=None, alias="dateFrom", description="Inclusive ISO date"),
    date_to: Optional[date] = Query(default=None, alias="dateTo", description="Inclusive ISO date"),
    min_amount: Optional[int] = Query(default=None, alias="minAmount", ge=0, description="Cents, vs subtotal"),
    max_amount: Optional[int] = Query(default=None, alias="maxAmount", ge=0, description="Cents, vs subtotal"),
    cursor: Optional[str] = Query(default=None, description="Opaque boundary cursor from a previous page"),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.page_max_limit),
    direction: Direction = Query(default="after"),
) -> Dict[str, Any]:
    stop = order_list_duration.timer()
    try:
        filters = OrderFilters(
            status=status,
            search=search,
            date_from=date_from,
            date_to=date_to,
            min_amount=min_amount,
            max_amount=max_amount,
        )
        matched = filter_orders(get_store().list(), filters, engine=totals_engine)
        page = paginate(
            matched,
            cursor=cursor,
            limit=limit or settings.page_default_limit,
            direction=direction,
        )
    finally:
        stop()
    return dump(page)


@router.get("/orders/metrics")
def order_metrics() -> Dict[str, Any]:
    """Dashboard headline numbers over the whole order book."""
    metrics = compute_order_metrics(
        get_store().list(),
        attention_hours=settings.attention_hours,
        engine=totals_engine,
    )
    return dump(metrics)


@router.patch("/orders/bulk-status")
def bulk_update_status(
    payload: BulkStatusUpdateRequest = Body(...),
    x_actor: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """
    Apply one status to many orders. Each order is validated on its own; failures
    are reported per id and never roll back the orders that succeeded.
    """
    store = get_store()
    actor = _actor(x_actor)
    result = BulkStatusUpdateResult(status=payload.status)

    # de-dup, preserve order
    seen = set()
    for order_id in payload.order_ids:
        if order_id in seen:
            continue
        seen.add(order_id)
        try:
            store.update_status(order_id, payload.status, actor=actor, note=payload.note)
        except OrderNotFoundError as exc:
            result.failed.append(BulkFailure(order_id=order_id, error=str(exc), reason="not_found"))
        except InvalidTransitionError as exc:
            result.failed.append(BulkFailure(order_id=order_id, error=exc.message, reason=exc.reason.value))
        else:
            result.updated.append(order_id)

    log.info(
        "bulk status update to=%s updated=%d failed=%d",
        payload.status.value, len(result.updated), len(result.failed),
    )
    return dump(result)


@router.get("/orders/{order_id}")
def get_order(order_id: str = PathParam(..., description="Order id, e.g. ORD-0001")) -> Dict[str, Any]:
    return _detail(get_store().get(order_id))


@router.patch("/orders/{order_id}/status")
def update_order_status(
    order_id: str = PathParam(...),
    payload: StatusUpdateRequest = Body(...),
    x_actor: Optional[str] = Header(default=None),
) -> Dict[str, Any]:
    """
    Move an order to a new status. Rejected transitions come back as 400 with
    {error, reason, currentStatus, requestedStatus}.
    """
    updated = get_store().update_status(
        order_id,
        payload.status,
        actor=_actor(x_actor),
        note=payload.note,
    )
    return _detail(updated)

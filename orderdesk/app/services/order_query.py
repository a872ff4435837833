# orderdesk/app/services/order_query.py
"""
Filtering and cursor pagination over an ordered list of orders.

A cursor is an opaque token naming the boundary order's id. "after" pages move
towards the end of the list, "before" pages towards its start; without a cursor
"after" yields the first page and "before" the last one.
"""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence

from orderdesk.app.core.errors import InvalidCursorError
from orderdesk.app.models.order import Cursors, Order, OrderFilters, OrderPage, PageInfo
from orderdesk.app.services.order_totals import OrderTotalsEngine, totals_engine

Direction = Literal["after", "before"]

_CURSOR_PREFIX = "order:"


def encode_cursor(order_id: str) -> str:
    raw = f"{_CURSOR_PREFIX}{order_id}".encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> str:
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise InvalidCursorError(f"Invalid cursor: {cursor!r}") from exc
    if not raw.startswith(_CURSOR_PREFIX) or len(raw) == len(_CURSOR_PREFIX):
        raise InvalidCursorError(f"Invalid cursor: {cursor!r}")
    return raw[len(_CURSOR_PREFIX):]


def filter_orders(
    orders: Sequence[Order],
    filters: OrderFilters,
    engine: OrderTotalsEngine = totals_engine,
) -> List[Order]:
    out = list(orders)

    if filters.status is not None:
        out = [o for o in out if o.status == filters.status]

    if filters.search:
        needle = filters.search.strip().lower()
        if needle:
            out = [
                o for o in out
                if needle in o.id.lower()
                or needle in o.customer_name.lower()
                or needle in o.customer_email.lower()
            ]

    if filters.date_from is not None:
        out = [o for o in out if o.order_date >= filters.date_from]
    if filters.date_to is not None:
        out = [o for o in out if o.order_date <= filters.date_to]

    # amount bounds are inclusive and compare against the computed subtotal
    if filters.min_amount is not None or filters.max_amount is not None:
        lo, hi = filters.min_amount, filters.max_amount
        kept = []
        for o in out:
            subtotal = engine.calculate_subtotal(o.items)
            if lo is not None and subtotal < lo:
                continue
            if hi is not None and subtotal > hi:
                continue
            kept.append(o)
        out = kept

    return out


@dataclass
class _Window:
    start: int
    stop: int


def _window(ids: List[str], cursor: Optional[str], limit: int, direction: Direction) -> _Window:
    n = len(ids)
    if cursor is None:
        if direction == "before":
            return _Window(max(0, n - limit), n)
        return _Window(0, min(limit, n))

    boundary = decode_cursor(cursor)
    try:
        pos = ids.index(boundary)
    except ValueError:
        raise InvalidCursorError(f"Cursor does not match any order in this result: {cursor!r}") from None

    if direction == "before":
        return _Window(max(0, pos - limit), pos)
    return _Window(pos + 1, min(pos + 1 + limit, n))


def paginate(
    orders: Sequence[Order],
    *,
    cursor: Optional[str] = None,
    limit: int = 20,
    direction: Direction = "after",
) -> OrderPage:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if direction not in ("after", "before"):
        raise ValueError(f"direction must be 'after' or 'before', got {direction!r}")

    ids = [o.id for o in orders]
    win = _window(ids, cursor, limit, direction)
    data = list(orders[win.start:win.stop])

    has_previous = win.start > 0
    has_next = win.stop < len(ids)
    start_cursor = encode_cursor(data[0].id) if data else None
    end_cursor = encode_cursor(data[-1].id) if data else None
    if not data and cursor is not None:
        # window ran past an end of the result; keep the boundary so clients can turn back or poll
        start_cursor = end_cursor = encode_cursor(decode_cursor(cursor))

    return OrderPage(
        data=data,
        page_info=PageInfo(
            has_next_page=has_next,
            has_previous_page=has_previous,
            start_cursor=start_cursor,
            end_cursor=end_cursor,
        ),
        cursors=Cursors(
            next=end_cursor if has_next else None,
            previous=start_cursor if has_previous else None,
        ),
    )

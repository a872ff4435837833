from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Sequence

from orderdesk.app.models.order import Order, OrderMetrics
from orderdesk.app.services.currency import round_cents
from orderdesk.app.services.order_totals import OrderTotalsEngine, totals_engine
from orderdesk.app.services.status_transitions import OrderStatus


def _placed_at(order: Order) -> datetime:
    # oldest history entry is the placement; fall back to midnight of the order date
    if order.status_history:
        return min(e.timestamp for e in order.status_history)
    return datetime.combine(order.order_date, datetime.min.time(), tzinfo=timezone.utc)


def compute_order_metrics(
    orders: Sequence[Order],
    *,
    attention_hours: int = 24,
    now: Optional[datetime] = None,
    engine: OrderTotalsEngine = totals_engine,
) -> OrderMetrics:
    """
    Dashboard headline numbers:
      - revenue: sum of final totals of delivered orders
      - average order value: mean final total over all orders
      - orders per status
      - pending orders placed more than `attention_hours` ago
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(hours=attention_hours)

    revenue = 0
    grand_total = 0
    by_status = {s.value: 0 for s in OrderStatus}
    attention = 0

    for o in orders:
        final = engine.calculate_order_totals(o.items).final_total_cents
        grand_total += final
        by_status[o.status.value] += 1
        if o.status == OrderStatus.DELIVERED:
            revenue += final
        if o.status == OrderStatus.PENDING and _placed_at(o) < cutoff:
            attention += 1

    average = round_cents(Decimal(grand_total) / len(orders)) if orders else 0

    return OrderMetrics(
        total_orders=len(orders),
        total_revenue_cents=revenue,
        average_order_value_cents=average,
        orders_by_status=by_status,
        orders_requiring_attention=attention,
    )

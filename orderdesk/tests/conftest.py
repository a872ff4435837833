from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from orderdesk.app.core.metrics import REGISTRY
from orderdesk.app.models.order import Order, OrderItem, StatusHistoryEntry
from orderdesk.app.services.order_store import reset_store
from orderdesk.app.services.seed_data import generate_orders

TODAY = date(2026, 3, 1)


def make_order(
    order_id: str,
    status: str = "pending",
    items=None,
    *,
    name: str = "Jane Smith",
    email: str = "jane.smith@example.com",
    order_date: date = TODAY,
) -> Order:
    items = items or [{"quantity": 1, "unitPrice": 1000}]
    return Order(
        id=order_id,
        customer_id=f"CUST-{order_id[-4:]}",
        customer_name=name,
        customer_email=email,
        order_date=order_date,
        status=status,
        items=[
            OrderItem(id=f"ITEM-{i}", product_name="Thing", quantity=it["quantity"], unit_price=it["unitPrice"])
            for i, it in enumerate(items)
        ],
        status_history=[
            StatusHistoryEntry(
                status=status,
                timestamp=datetime.combine(order_date, datetime.min.time(), tzinfo=timezone.utc),
                updated_by="system",
            )
        ],
    )


@pytest.fixture(autouse=True)
def fresh_store():
    """Every test starts with the same small seeded order book and zeroed metrics."""
    REGISTRY.reset()
    store = reset_store(generate_orders(60, seed=7, today=TODAY))
    yield store
    REGISTRY.reset()

# orderdesk/app/services/seed_data.py
from __future__ import annotations

import random
import string
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Tuple

from orderdesk.app.models.order import Order, OrderItem, StatusHistoryEntry
from orderdesk.app.services.status_transitions import HAPPY_PATH, OrderStatus

# (name, unit price in cents)
PRODUCTS: Tuple[Tuple[str, int], ...] = (
    ("Wireless Headphones", 8999),
    ("USB-C Cable", 1250),
    ("Phone Case", 2499),
    ("Laptop Stand", 4500),
    ("Wireless Mouse", 2999),
    ("Mechanical Keyboard", 12999),
    ("Monitor", 29999),
    ("Webcam", 7999),
    ("Desk Lamp", 3999),
    ("External SSD", 14999),
    ("Power Bank", 4999),
    ("Gaming Chair", 39999),
    ("Microphone", 9999),
    ("USB Hub", 3499),
    ("Cable Organizer", 1599),
)

FIRST_NAMES = ("John", "Jane", "Michael", "Sarah", "David", "Emily", "Robert", "Lisa", "James", "Maria")
LAST_NAMES = ("Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Rodriguez", "Martinez")
DOMAINS = ("example.com", "email.com", "test.com", "demo.com", "sample.com")

MAX_AGE_DAYS = 90


def _items(rng: random.Random) -> List[OrderItem]:
    out: List[OrderItem] = []
    for _ in range(rng.randint(1, 5)):
        name, price = rng.choice(PRODUCTS)
        suffix = "".join(rng.choices(string.ascii_lowercase + string.digits, k=9))
        out.append(OrderItem(
            id=f"ITEM-{suffix}",
            product_name=name,
            quantity=rng.randint(1, 3),
            unit_price=price,
        ))
    return out


def _history(rng: random.Random, final: OrderStatus, placed_at: datetime) -> List[StatusHistoryEntry]:
    """One entry per day from placement, ending at `final`; returned newest first."""
    if final == OrderStatus.CANCELLED:
        # cancelled somewhere before shipping completed
        cancel_at = rng.randint(0, 2)
        steps = list(HAPPY_PATH[:cancel_at]) + [OrderStatus.CANCELLED]
    else:
        steps = list(HAPPY_PATH[: HAPPY_PATH.index(final) + 1])

    history = []
    for i, status in enumerate(steps):
        history.append(StatusHistoryEntry(
            status=status,
            timestamp=placed_at + timedelta(hours=24 * i),
            updated_by="system" if i == 0 else f"User {rng.randint(1, 10)}",
        ))
    history.reverse()
    return history


def generate_order(rng: random.Random, number: int, today: date) -> Order:
    first, last = rng.choice(FIRST_NAMES), rng.choice(LAST_NAMES)
    order_date = today - timedelta(days=rng.randint(0, MAX_AGE_DAYS - 1))
    placed_at = datetime.combine(order_date, time(rng.randint(0, 23), rng.randint(0, 59)), tzinfo=timezone.utc)
    status = rng.choice(list(OrderStatus))
    return Order(
        id=f"ORD-{number:04d}",
        customer_id=f"CUST-{number:04d}",
        customer_name=f"{first} {last}",
        customer_email=f"{first.lower()}.{last.lower()}@{rng.choice(DOMAINS)}",
        order_date=order_date,
        status=status,
        items=_items(rng),
        status_history=_history(rng, status, placed_at),
    )


def generate_orders(count: int, seed: int = 42, today: Optional[date] = None) -> List[Order]:
    rng = random.Random(seed)
    today = today or datetime.now(timezone.utc).date()
    return [generate_order(rng, n, today) for n in range(1, count + 1)]

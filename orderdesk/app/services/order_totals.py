# orderdesk/app/services/order_totals.py
"""
Order totals pipeline:

    subtotal -> bulk discount -> tax -> shipping -> final total

Every stage works in integer cents and rounds (half up) as soon as a rate is applied,
so the next stage only ever sees whole cents.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from orderdesk.app.core.errors import InvalidInputError
from orderdesk.app.services.currency import (
    calculate_percentage,
    format_cents_with_separator,
    format_rate,
    round_cents,
)


@dataclass(frozen=True)
class BulkDiscountTier:
    threshold_cents: int
    rate: Decimal


@dataclass(frozen=True)
class PricingRules:
    # highest threshold first; first tier strictly exceeded wins
    discount_tiers: Tuple[BulkDiscountTier, ...]
    tax_rate: Decimal
    shipping_flat_cents: int
    free_shipping_over_cents: int

    def __post_init__(self):
        thresholds = [t.threshold_cents for t in self.discount_tiers]
        if thresholds != sorted(thresholds, reverse=True):
            raise ValueError("discount tiers must be ordered highest threshold first")
        for t in self.discount_tiers:
            if not (Decimal("0") <= t.rate < Decimal("1")):
                raise ValueError(f"discount rate out of range: {t.rate}")


DEFAULT_PRICING_RULES = PricingRules(
    discount_tiers=(
        BulkDiscountTier(200000, Decimal("0.15")),
        BulkDiscountTier(100000, Decimal("0.10")),
        BulkDiscountTier(50000, Decimal("0.05")),
    ),
    tax_rate=Decimal("0.13"),
    shipping_flat_cents=1000,
    free_shipping_over_cents=10000,
)


@dataclass(frozen=True)
class OrderTotals:
    subtotal_cents: int
    discount_rate: Decimal
    discount_amount_cents: int
    subtotal_after_discount_cents: int
    tax_rate: Decimal
    tax_amount_cents: int
    shipping_cost_cents: int
    final_total_cents: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotalCents": self.subtotal_cents,
            "discountRate": float(self.discount_rate),
            "discountAmountCents": self.discount_amount_cents,
            "subtotalAfterDiscountCents": self.subtotal_after_discount_cents,
            "taxRate": float(self.tax_rate),
            "taxAmountCents": self.tax_amount_cents,
            "shippingCostCents": self.shipping_cost_cents,
            "finalTotalCents": self.final_total_cents,
        }


@dataclass(frozen=True)
class _Line:
    quantity: int
    unit_price: int


def _field(item: Any, *names: str) -> Any:
    if isinstance(item, Mapping):
        for n in names:
            if n in item:
                return item[n]
    else:
        for n in names:
            if hasattr(item, n):
                return getattr(item, n)
    raise InvalidInputError(f"order item is missing '{names[0]}'", field=names[0])


def _line(item: Any) -> _Line:
    quantity = _field(item, "quantity")
    unit_price = _field(item, "unit_price", "unitPrice")
    # bool is an int subclass; reject it explicitly
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidInputError(f"quantity must be a positive integer, got {quantity!r}", field="quantity")
    if isinstance(unit_price, bool) or not isinstance(unit_price, int) or unit_price < 0:
        raise InvalidInputError(
            f"unitPrice must be a non-negative integer number of cents, got {unit_price!r}",
            field="unitPrice",
        )
    return _Line(quantity, unit_price)


def _dollars(cents: int) -> str:
    text = format_cents_with_separator(cents)
    return text[:-3] if text.endswith(".00") else text


class OrderTotalsEngine:
    def __init__(self, rules: PricingRules = DEFAULT_PRICING_RULES):
        self.rules = rules

    def calculate_subtotal(self, items: Iterable[Any]) -> int:
        lines = [_line(i) for i in items]
        return sum(round_cents(l.quantity * l.unit_price) for l in lines)

    def get_bulk_discount_rate(self, subtotal_cents: int) -> Decimal:
        for tier in self.rules.discount_tiers:
            if subtotal_cents > tier.threshold_cents:
                return tier.rate
        return Decimal("0")

    def calculate_bulk_discount(self, subtotal_cents: int) -> int:
        return calculate_percentage(subtotal_cents, self.get_bulk_discount_rate(subtotal_cents))

    def calculate_tax(self, amount_cents: int) -> int:
        return calculate_percentage(amount_cents, self.rules.tax_rate)

    def calculate_shipping(self, post_discount_subtotal_cents: int) -> int:
        if post_discount_subtotal_cents > self.rules.free_shipping_over_cents:
            return 0
        return self.rules.shipping_flat_cents

    def calculate_order_totals(self, items: Iterable[Any]) -> OrderTotals:
        items = list(items)
        if not items:
            raise InvalidInputError("order must have at least one item", field="items")

        subtotal = self.calculate_subtotal(items)
        discount_rate = self.get_bulk_discount_rate(subtotal)
        discount = calculate_percentage(subtotal, discount_rate)
        after_discount = subtotal - discount
        tax = self.calculate_tax(after_discount)
        shipping = self.calculate_shipping(after_discount)

        return OrderTotals(
            subtotal_cents=subtotal,
            discount_rate=discount_rate,
            discount_amount_cents=discount,
            subtotal_after_discount_cents=after_discount,
            tax_rate=self.rules.tax_rate,
            tax_amount_cents=tax,
            shipping_cost_cents=shipping,
            final_total_cents=after_discount + tax + shipping,
        )

    def describe_rules(self) -> Dict[str, Any]:
        """Legend for the order summary panel, generated from the live rules."""
        r = self.rules
        discounts: List[str] = [
            f"{format_rate(t.rate)} discount when subtotal exceeds ${_dollars(t.threshold_cents)}"
            for t in reversed(r.discount_tiers)
        ]
        return {
            "bulkDiscounts": discounts,
            "tax": f"{format_rate(r.tax_rate)} calculated on the discounted subtotal",
            "shipping": (
                f"${_dollars(r.shipping_flat_cents)} flat rate, FREE for orders over "
                f"${_dollars(r.free_shipping_over_cents)} (after discount)"
            ),
            "finalTotal": "Subtotal - Discount + Tax + Shipping",
            "constants": {
                "discountTiers": [
                    {"thresholdCents": t.threshold_cents, "rate": float(t.rate)} for t in r.discount_tiers
                ],
                "taxRate": float(r.tax_rate),
                "shippingFlatCents": r.shipping_flat_cents,
                "freeShippingOverCents": r.free_shipping_over_cents,
            },
        }


totals_engine = OrderTotalsEngine()

calculate_subtotal = totals_engine.calculate_subtotal
get_bulk_discount_rate = totals_engine.get_bulk_discount_rate
calculate_bulk_discount = totals_engine.calculate_bulk_discount
calculate_shipping = totals_engine.calculate_shipping
calculate_order_totals = totals_engine.calculate_order_totals
describe_rules = totals_engine.describe_rules

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from orderdesk.app.services.status_transitions import OrderStatus


class CamelModel(BaseModel):
    """Wire models use the dashboard's camelCase keys; Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----------------------------
# Stored entities
# ----------------------------

class OrderItem(CamelModel):
    id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    unit_price: int = Field(..., ge=0, description="Unit price in cents")


class StatusHistoryEntry(CamelModel):
    status: OrderStatus
    timestamp: datetime
    updated_by: str = Field(..., min_length=1)
    note: Optional[str] = None


class Order(CamelModel):
    id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3)
    order_date: date
    status: OrderStatus
    items: List[OrderItem] = Field(..., min_length=1)
    # newest first
    status_history: List[StatusHistoryEntry] = Field(default_factory=list)

    @field_validator("customer_email")
    @classmethod
    def _email_has_at(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("customerEmail must be an email address")
        return v


# ----------------------------
# Requests
# ----------------------------

class QuoteItem(CamelModel):
    product_name: str = Field(default="", description="Display only")
    quantity: int = Field(..., gt=0)
    unit_price: int = Field(..., ge=0, description="Unit price in cents")


class QuoteRequest(CamelModel):
    items: List[QuoteItem] = Field(..., min_length=1)


class StatusUpdateRequest(CamelModel):
    status: OrderStatus
    note: Optional[str] = Field(default=None, max_length=500)


class BulkStatusUpdateRequest(CamelModel):
    order_ids: List[str] = Field(..., min_length=1, max_length=500)
    status: OrderStatus
    note: Optional[str] = Field(default=None, max_length=500)


class OrderFilters(CamelModel):
    status: Optional[OrderStatus] = None
    search: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    min_amount: Optional[int] = Field(default=None, ge=0, description="Cents, compared to subtotal")
    max_amount: Optional[int] = Field(default=None, ge=0, description="Cents, compared to subtotal")


# ----------------------------
# Responses
# ----------------------------

class PageInfo(CamelModel):
    has_next_page: bool
    has_previous_page: bool
    start_cursor: Optional[str] = None
    end_cursor: Optional[str] = None


class Cursors(CamelModel):
    next: Optional[str] = None
    previous: Optional[str] = None


class OrderPage(CamelModel):
    data: List[Order]
    page_info: PageInfo
    cursors: Cursors


class OrderTotalsOut(CamelModel):
    subtotal_cents: int
    discount_rate: float
    discount_amount_cents: int
    subtotal_after_discount_cents: int
    tax_rate: float
    tax_amount_cents: int
    shipping_cost_cents: int
    final_total_cents: int


class OrderDetail(Order):
    totals: OrderTotalsOut
    allowed_transitions: List[OrderStatus]
    is_terminal: bool


class BulkFailure(CamelModel):
    order_id: str
    error: str
    reason: Literal["same_status", "terminal_state", "not_allowed", "not_found"]


class BulkStatusUpdateResult(CamelModel):
    status: OrderStatus
    updated: List[str] = Field(default_factory=list)
    failed: List[BulkFailure] = Field(default_factory=list)


class OrderMetrics(CamelModel):
    total_orders: int
    total_revenue_cents: int
    average_order_value_cents: int
    orders_by_status: Dict[str, int]
    orders_requiring_attention: int


def dump(model: BaseModel) -> Dict[str, Any]:
    """JSON-ready dict with camelCase keys."""
    return model.model_dump(mode="json", by_alias=True)

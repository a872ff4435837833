from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body

from orderdesk.app.models.order import OrderTotalsOut, QuoteRequest, dump
from orderdesk.app.services.order_totals import totals_engine

router = APIRouter(prefix="/api", tags=["totals"])


@router.post("/totals")
def quote_totals(payload: QuoteRequest = Body(...)) -> Dict[str, Any]:
    """Full totals breakdown for ad-hoc line items (order summary preview)."""
    totals = totals_engine.calculate_order_totals(payload.items)
    return dump(OrderTotalsOut(**totals.to_dict()))


@router.get("/totals/rules")
def totals_rules() -> Dict[str, Any]:
    """Calculation rules legend, rendered from the constants the engine runs on."""
    return totals_engine.describe_rules()

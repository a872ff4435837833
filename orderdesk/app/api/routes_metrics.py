from __future__ import annotations

from fastapi import APIRouter, Response

from orderdesk.app.core.metrics import REGISTRY, orders_by_status
from orderdesk.app.services.order_store import get_store

router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/metrics")
def metrics() -> Response:
    # order gauges are refreshed per scrape from the live book
    for status, count in get_store().count_by_status().items():
        orders_by_status.set(count, labels={"status": status})

    return Response(content=REGISTRY.render_prometheus(), media_type="text/plain; version=0.0.4")

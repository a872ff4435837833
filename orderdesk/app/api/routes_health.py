from __future__ import annotations

from fastapi import APIRouter

from orderdesk.app.core.config import settings
from orderdesk.app.services.order_store import get_store

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health():
    store_probe = "ok"
    order_count = 0
    try:
        order_count = len(get_store())
    except Exception:
        store_probe = "fail"

    return {
        "service": settings.service_name,
        "version": settings.version,
        "env": {
            "environment": settings.environment,
            "seed_order_count": settings.seed_order_count,
            "seed_random_seed": settings.seed_random_seed,
        },
        "features": {
            "page_default_limit": settings.page_default_limit,
            "page_max_limit": settings.page_max_limit,
            "attention_hours": settings.attention_hours,
        },
        "status": "ok" if store_probe == "ok" else "degraded",
        "probes": {
            "order_store": store_probe,
            "orders": order_count,
        },
    }

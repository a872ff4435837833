from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Path as PathParam

from orderdesk.app.services.status_transitions import OrderStatus, status_engine

router = APIRouter(prefix="/api", tags=["statuses"])


@router.get("/statuses")
def list_statuses() -> List[Dict[str, Any]]:
    """Every status with its display metadata and what it may move to."""
    return [status_engine.describe(s) for s in status_engine.get_all_statuses()]


@router.get("/statuses/{status}")
def get_status(status: OrderStatus = PathParam(...)) -> Dict[str, Any]:
    info = status_engine.describe(status)
    info["path"] = [s.value for s in status_engine.get_status_path(status)]
    return info

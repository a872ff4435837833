# orderdesk/main.py
from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from orderdesk.app.core.logging import setup_logging
from orderdesk.app.core.config import settings
from orderdesk.app.core.errors import (
    InvalidCursorError,
    InvalidInputError,
    InvalidTransitionError,
    OrderNotFoundError,
)

from orderdesk.app.api.routes_health import router as health_router
from orderdesk.app.api.routes_metrics import router as metrics_router
from orderdesk.app.api.routes_orders import router as orders_router
from orderdesk.app.api.routes_statuses import router as statuses_router
from orderdesk.app.api.routes_totals import router as totals_router

log = logging.getLogger(__name__)


def create_app() -> FastAPI:
    # Initialize logging early so all imports use correct handlers/levels
    setup_logging()

    app = FastAPI(
        title=settings.service_name or "orderdesk",
        version=settings.version or "0.1.0",
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
    )

    # --- Domain errors -> HTTP ---
    @app.exception_handler(InvalidTransitionError)
    async def _invalid_transition(request: Request, exc: InvalidTransitionError):
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(OrderNotFoundError)
    async def _not_found(request: Request, exc: OrderNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidCursorError)
    async def _bad_cursor(request: Request, exc: InvalidCursorError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(InvalidInputError)
    async def _contract_violation(request: Request, exc: InvalidInputError):
        # request validation should have caught this before the engines ran
        log.error("input contract violation on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "detail": str(exc), "field": exc.field},
        )

    # --- Global JSON error handler: unexpected 500s as JSON so clients can parse ---
    @app.exception_handler(Exception)
    async def _unhandled_exc_to_json(request: Request, exc: Exception):
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        log.error("unhandled exception on %s %s\n%s", request.method, request.url.path, tb)
        content = {
            "status": "error",
            "detail": str(exc),
            "path": str(request.url),
            "method": request.method,
        }
        if settings.environment == "dev":
            content["traceback_tail"] = tb[-2000:]
        return JSONResponse(status_code=500, content=content)

    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods or ["*"],
        allow_headers=settings.cors_allow_headers or ["*"],
    )

    # Routes
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(orders_router)
    app.include_router(statuses_router)
    app.include_router(totals_router)

    # Friendly root
    @app.get("/")
    def root():
        return {
            "service": settings.service_name or "orderdesk",
            "version": settings.version or "0.1.0",
            "environment": settings.environment or "dev",
            "docs": "/docs",
            "openapi": "/openapi.json",
            "tips": {
                "health": "/api/health",
                "orders": "GET /api/orders?status=pending&limit=20",
                "order": "GET /api/orders/{id}",
                "update_status": "PATCH /api/orders/{id}/status",
                "bulk_status": "PATCH /api/orders/bulk-status",
                "dashboard_metrics": "/api/orders/metrics",
                "statuses": "/api/statuses",
                "quote": "POST /api/totals",
                "rules": "/api/totals/rules",
                "prometheus": "/api/metrics",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("orderdesk.main:app", host=settings.host, port=settings.port)

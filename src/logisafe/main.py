"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, maps, orders, risk, routes, workflows
from .config import settings
from .services.assignment.registry import get_workflow_registry
from .services.risk.feed import RiskFeedTicker, get_risk_feed


@asynccontextmanager
async def lifespan(app: FastAPI):
    ticker = RiskFeedTicker(get_risk_feed()) if settings.risk_feed_enabled else None
    if ticker is not None:
        ticker.start()
    app.state.risk_feed_ticker = ticker
    try:
        yield
    finally:
        if ticker is not None:
            await ticker.stop()
        # Release workflow overlays and the risk update pool.
        get_workflow_registry().shutdown()
        get_workflow_registry.cache_clear()
        logging.info("LogiSafe shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
    )
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(routes.router, prefix=settings.api_prefix)
    app.include_router(maps.router, prefix=settings.api_prefix)
    app.include_router(risk.router, prefix=settings.api_prefix)
    app.include_router(orders.router, prefix=settings.api_prefix)
    app.include_router(workflows.router, prefix=settings.api_prefix)
    return app


app = create_app()

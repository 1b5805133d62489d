"""API route registration."""

from fastapi import FastAPI

from parley.config.settings import Settings
from parley.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Settings deciding whether /metrics is exposed
    """
    from parley.api.routes.chat import router as chat_router
    from parley.api.routes.health import metrics_router
    from parley.api.routes.health import router as health_router

    app.include_router(chat_router, tags=["Chat"])
    app.include_router(health_router, tags=["Health"])
    if settings.observability.metrics.enabled:
        app.include_router(metrics_router, tags=["Health"])

    logger.info("routes_registered", metrics=settings.observability.metrics.enabled)

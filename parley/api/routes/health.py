"""Health, readiness and metrics endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from parley import __version__
from parley.api.dependencies import SessionStoreDep, SettingsDep, get_llm_provider
from parley.api.models.health import HealthResponse, HealthStatus
from parley.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()
metrics_router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness: the API process is up."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        services={"api": "healthy"},
        timestamp=datetime.now(UTC),
    )


@router.get(
    "/health/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def readiness_check(
    settings: SettingsDep,
    session_store: SessionStoreDep,
) -> Response:
    """Readiness: the session store exists and the provider can be built."""
    services: dict[str, HealthStatus] = {
        "api": "healthy",
        "session_store": "healthy" if session_store is not None else "unhealthy",
    }

    try:
        await get_llm_provider(settings)
        services["llm"] = "healthy"
    except ValueError as e:
        logger.warning("llm_provider_not_ready", error=str(e))
        services["llm"] = "unhealthy"

    healthy = all(status == "healthy" for status in services.values())
    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=__version__,
        services=services,
        timestamp=datetime.now(UTC),
    )
    return JSONResponse(
        status_code=200 if healthy else 503,
        content=body.model_dump(mode="json"),
    )


@metrics_router.get("/metrics")
async def get_metrics() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

"""Health check and metrics endpoints."""

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from skillrelay import __version__
from skillrelay.api.dependencies import RuntimeDep
from skillrelay.api.models import ComponentHealth, HealthResponse
from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(runtime: RuntimeDep) -> HealthResponse:
    """Report the state store of each bot."""
    components = []
    for name, store in runtime.state_stores.items():
        healthy = await store.health_check()
        components.append(
            ComponentHealth(
                name=f"{name}_state_store",
                status="healthy" if healthy else "unhealthy",
            )
        )

    unhealthy = sum(1 for c in components if c.status == "unhealthy")
    overall: Literal["healthy", "degraded", "unhealthy"]
    if unhealthy == 0:
        overall = "healthy"
    elif unhealthy < len(components):
        overall = "degraded"
    else:
        overall = "unhealthy"

    logger.debug("health_check_completed", status=overall)
    return HealthResponse(
        status=overall,
        version=__version__,
        components=components,
        timestamp=datetime.now(UTC),
    )


@router.get("/metrics")
async def get_metrics() -> Response:
    """Prometheus metrics in text format for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

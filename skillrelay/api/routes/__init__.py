"""API route registration."""

from fastapi import FastAPI

from skillrelay.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI) -> None:
    from skillrelay.api.routes.health import router as health_router
    from skillrelay.api.routes.messages import router as messages_router

    app.include_router(messages_router, tags=["Messages"])
    app.include_router(health_router, tags=["Health"])

    logger.info("routes_registered")

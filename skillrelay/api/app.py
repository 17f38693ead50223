"""FastAPI application factory.

Creates the application, attaches the runtime and maps failures to HTTP
responses. Transient failures (state conflicts, an unreachable store, a
busy conversation) become 503 so the channel retries the activity.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from skillrelay import __version__
from skillrelay.api.models import ErrorBody, ErrorResponse
from skillrelay.api.routes import register_routes
from skillrelay.config import get_settings
from skillrelay.conversation.errors import ConnectionError, StatePersistenceConflict
from skillrelay.observability.logging import get_logger, setup_logging
from skillrelay.runtime.factory import Runtime, build_runtime
from skillrelay.runtime.mutex import ConversationBusy
from skillrelay.skills.handler import UnauthorizedCaller

logger = get_logger(__name__)


def create_app(runtime: Runtime | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        runtime: Prebuilt runtime; built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    if runtime is None:
        setup_logging(level=settings.log_level, format=settings.log_format)
        runtime = build_runtime(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.runtime.close()

    app = FastAPI(
        title="skillrelay",
        description="Multi-turn dialogs with skill delegation and SSO token exchange",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    _register_exception_handlers(app)
    register_routes(app)

    logger.info("app_created", debug=settings.debug)
    return app


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StatePersistenceConflict)
    async def state_conflict_handler(
        request: Request, exc: StatePersistenceConflict
    ) -> JSONResponse:
        logger.warning("state_persistence_conflict", path=request.url.path)
        return _error(503, "STATE_CONFLICT", "Conversation was updated concurrently, retry")

    @app.exception_handler(ConnectionError)
    async def store_unavailable_handler(request: Request, exc: ConnectionError) -> JSONResponse:
        logger.error("state_store_unavailable", path=request.url.path, error=str(exc))
        return _error(503, "STORE_UNAVAILABLE", "Conversation state is unavailable, retry")

    @app.exception_handler(ConversationBusy)
    async def busy_handler(request: Request, exc: ConversationBusy) -> JSONResponse:
        logger.warning("conversation_busy", path=request.url.path)
        return _error(503, "CONVERSATION_BUSY", "Conversation is busy, retry")

    @app.exception_handler(UnauthorizedCaller)
    async def unauthorized_caller_handler(
        request: Request, exc: UnauthorizedCaller
    ) -> JSONResponse:
        logger.warning("skill_caller_unauthorized", caller_id=exc.caller_id)
        return _error(403, "UNAUTHORIZED_CALLER", "Caller is not allowed to call this skill")

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("validation_error", errors=exc.errors(), path=request.url.path)
        return _error(400, "INVALID_REQUEST", "Request validation failed")

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unexpected_error",
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return _error(500, "INTERNAL_ERROR", "An unexpected error occurred")

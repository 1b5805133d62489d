"""FastAPI application factory.

Creates and configures the FastAPI application with middleware,
exception handlers, lifespan tasks and route registration.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from parley import __version__
from parley.api.dependencies import get_session_store, get_settings, reset_dependencies
from parley.api.exceptions import ParleyAPIError
from parley.api.middleware.context import RequestContextMiddleware
from parley.api.models.errors import ErrorCode, ErrorDetail, ErrorResponse
from parley.api.routes import register_routes
from parley.config.settings import Settings
from parley.conversation.exceptions import CompletionFailedError, InvalidInputError
from parley.conversation.sweeper import SessionSweeper
from parley.observability.logging import get_logger, setup_logging
from parley.observability.tracing import setup_tracing

logger = get_logger(__name__)


def _error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: list[ErrorDetail] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the idle session sweeper and release resources on shutdown."""
    settings: Settings = app.state.settings
    conversation = settings.conversation

    sweeper: SessionSweeper | None = None
    if conversation.session_timeout_minutes > 0:
        store = await get_session_store(settings)
        sweeper = SessionSweeper(
            store,
            idle_timeout=timedelta(minutes=conversation.session_timeout_minutes),
            interval_seconds=conversation.sweep_interval_seconds,
        )
        sweeper.start()
    else:
        logger.info("session_sweeper_disabled")

    try:
        yield
    finally:
        if sweeper is not None:
            await sweeper.stop()
        await reset_dependencies()
        logger.info("app_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (loaded from config files when omitted)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    logging_config = settings.observability.logging
    setup_logging(
        level=logging_config.level,
        format=logging_config.format,
        redact_pii=logging_config.redact_pii,
    )

    app = FastAPI(
        title="Parley API",
        description="Session-aware chat front-end for LLM completion providers",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # Route dependencies resolve the same settings the app was built with.
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=settings.api.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)
    register_routes(app, settings)

    tracing = settings.observability.tracing
    if tracing.enabled:
        setup_tracing(service_name=tracing.service_name, otlp_endpoint=tracing.otlp_endpoint)
        FastAPIInstrumentor.instrument_app(app)
        logger.info("opentelemetry_instrumentation_enabled")

    logger.info(
        "app_created",
        debug=settings.debug,
        cors_origins=settings.api.cors_origins,
        llm_provider=settings.providers.llm.provider,
    )

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application
    """

    @app.exception_handler(ParleyAPIError)
    async def parley_api_error_handler(request: Request, exc: ParleyAPIError) -> JSONResponse:
        """Handle ParleyAPIError and its subclasses."""
        logger.warning(
            "api_error",
            error_code=exc.error_code.value,
            message=exc.message,
            path=request.url.path,
        )
        return _error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
        """Handle input rejected by the conversation core."""
        logger.warning("invalid_input", message=exc.message, path=request.url.path)
        return _error_response(400, ErrorCode.INVALID_REQUEST, exc.message)

    @app.exception_handler(CompletionFailedError)
    async def completion_failed_handler(
        request: Request, exc: CompletionFailedError
    ) -> JSONResponse:
        """Log the provider failure; the client only sees a generic error."""
        cause = exc.__cause__
        logger.error(
            "completion_failed_response",
            session_id=exc.session_id,
            reason=exc.message,
            cause=str(cause) if cause else None,
            cause_type=type(cause).__name__ if cause else None,
            path=request.url.path,
        )
        return _error_response(
            500,
            ErrorCode.INTERNAL_ERROR,
            "An error occurred while processing your request",
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors."""
        logger.warning("validation_error", errors=exc.errors(), path=request.url.path)

        details = [
            ErrorDetail(field=".".join(str(loc) for loc in error["loc"]), message=error["msg"])
            for error in exc.errors()
        ]
        return _error_response(
            400, ErrorCode.INVALID_REQUEST, "Request validation failed", details
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unexpected_error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return _error_response(500, ErrorCode.INTERNAL_ERROR, "An unexpected error occurred")

    logger.debug("exception_handlers_registered")


# Create the app instance for uvicorn
app = create_app()

"""Main FastAPI application for the sound catalog and alarm API."""

import logging
import signal
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.config import Settings, settings as default_settings
from src.api.alarms import router as alarms_router
from src.api.auth import router as auth_router
from src.api.docs import router as docs_router
from src.api.errors import correlation_id_for, create_error_response
from src.api.sounds import router as sounds_router
from src.clients.database_client import DatabaseManager
from src.middleware import (
    ApiKeyMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    MetricsMiddleware,
    RateLimitMiddleware,
    get_metrics
)
from src.models.api_models import HealthResponse
from src.observability import (
    setup_observability,
    instrument_fastapi_app,
    TracingContextMiddleware
)
from src.services.alarm_service import AlarmService
from src.services.catalog_service import CatalogBuilder
from src.services.key_validator import KeyValidator

SERVICE_NAME = "sound-alarm-api"
SERVICE_VERSION = "1.0.0"


# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    app_settings: Settings = app.state.settings
    logger.info("Starting sound catalog and alarm API",
                port=app_settings.port,
                host=app_settings.host,
                credential_scoping=app_settings.credential_scoping)

    if app_settings.reset_database_on_startup:
        app.state.db_manager.client.reset_schema()

    if not app_settings.music_dir.is_dir():
        logger.warning("Music directory not found, catalog will be empty",
                       music_dir=str(app_settings.music_dir))

    yield

    logger.info("Shutting down sound catalog and alarm API")
    app.state.db_manager.client.dispose()


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application and wire its services.

    Args:
        app_settings: Settings to use instead of the environment-derived defaults
    """
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Skills Music API",
        description="Sound catalog built from an assets directory, with per-client alarm scheduling",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None
    )

    key_validator = KeyValidator(app_settings.api_keys)
    db_manager = DatabaseManager(app_settings.database_url)

    app.state.settings = app_settings
    app.state.key_validator = key_validator
    app.state.db_manager = db_manager
    app.state.alarm_service = AlarmService(
        db_manager,
        key_validator,
        scoped=app_settings.credential_scoping
    )
    app.state.catalog_builder = CatalogBuilder(
        app_settings.music_dir,
        app_settings.description_dir,
        app_settings.cover_dir
    )

    setup_observability(
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        otlp_endpoint=app_settings.otlp_endpoint,
        enable_console_export=app_settings.otel_console_export
    )
    instrument_fastapi_app(app)

    # Add middleware (order matters - last added is executed first)
    app.add_middleware(
        ApiKeyMiddleware,
        key_validator=key_validator,
        header_name=app_settings.api_key_header
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=app_settings.rate_limit_requests,
        window_seconds=app_settings.rate_limit_window_seconds
    )
    app.add_middleware(TracingContextMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sounds_router)
    app.include_router(alarms_router)
    app.include_router(auth_router)
    app.include_router(docs_router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed path parameters or request bodies are reported as 400."""
        logger.info("Rejected malformed request", path=request.url.path, errors=len(exc.errors()))
        return create_error_response(
            "BadRequest",
            "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ) or "Malformed request",
            correlation_id_for(request),
            400
        )

    @app.get("/healthz", response_model=HealthResponse)
    def health_check() -> HealthResponse:
        """Health check endpoint."""
        healthy = db_manager.health_check()
        return HealthResponse(
            status="healthy" if healthy else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=SERVICE_VERSION,
            alarm_count=db_manager.alarms.count_alarms() if healthy else None
        )

    @app.get("/metrics")
    def metrics_endpoint():
        """Application metrics endpoint."""
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "metrics": get_metrics()
        }

    return app


app = create_app()


def handle_shutdown(signum, frame):
    """Handle graceful shutdown signals."""
    logger.info("Received shutdown signal", signal=signum)
    sys.exit(0)


def run() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=default_settings.log_level)

    # Register signal handlers for graceful shutdown
    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    uvicorn.run(
        "src.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
        reload=False
    )


if __name__ == "__main__":
    run()

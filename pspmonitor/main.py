"""
FastAPI application factory with middleware, CORS, and request tracing.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pspmonitor.config import Settings, get_settings
from pspmonitor.routers import alerts, events, health, transactions
from pspmonitor.services import EventBroadcaster
from pspmonitor.storage import StorageError, create_storage
from pspmonitor.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Opens storage at startup and closes it at shutdown.
    """
    settings: Settings = app.state.settings

    # Startup
    storage = create_storage(settings)
    storage.open()
    app.state.storage = storage
    app.state.broadcaster = EventBroadcaster()

    logger.info(
        "application_startup",
        version=app.version,
        db_path=settings.db_path,
        dev_mode=settings.dev_mode,
    )

    try:
        yield
    finally:
        # Shutdown
        storage.close()
        logger.info("application_shutdown")


def _error_body(error: str, **extra) -> dict:
    return {"success": False, "error": error, **extra}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.
    Creates and configures FastAPI application instance.

    Args:
        settings: Settings to use (defaults to environment-loaded settings)
    """
    settings = settings or get_settings()
    # Fail at startup, not on first request, if thresholds are inconsistent
    _ = settings.alert_thresholds

    app = FastAPI(
        title="PSP Health Monitor",
        description="Payment service provider transaction health, alerts, trends and scores",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Request tracing middleware
    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Add request ID and timing to all requests."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )

            return response
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content=_error_body("Internal server error", request_id=request_id),
                headers={"X-Request-ID": request_id},
            )

    # Error handlers
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info("request_validation_failed", path=request.url.path, error_count=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content=_error_body("Validation failed", details=jsonable_errors(exc)),
        )

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content=_error_body("Storage error"))

    # Liveness endpoint
    @app.get("/ping", tags=["System"])
    async def ping(request: Request):
        """Liveness check reporting the stored transaction count."""
        return {
            "status": "ok",
            "transaction_count": request.app.state.storage.count_transactions(),
        }

    # Include routers
    app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
    app.include_router(health.router, prefix="/api/health", tags=["Health"])
    app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])
    app.include_router(events.router, prefix="/api/events", tags=["Events"])

    logger.info("application_configured", routers_count=4)

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors reduced to JSON-safe location/message/type triples."""
    return [
        {
            "loc": list(err.get("loc", ())),
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pspmonitor.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )

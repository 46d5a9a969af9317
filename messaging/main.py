"""
FastAPI application factory and configuration.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from messaging.core.config import get_settings
from messaging.core.database import init_db
from messaging.core.exceptions import InvalidArgument, LedgerError, StorageFailure
from messaging.core.logging import setup_logging, get_logger
from messaging.api import conversations, messages, health, metrics
from messaging.api.metrics import MetricsMiddleware
from messaging.core.metrics import set_startup_time


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger = get_logger(__name__)
    logger.info("Starting application...")

    init_db()
    logger.info("Database initialized")

    set_startup_time()

    yield

    logger.info("Shutting down application...")


def _error_response(code: str, detail: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": code, "detail": detail})


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto stable status codes and error codes."""
    logger = get_logger(__name__)

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                f"{exc.code}: {exc.message}",
                extra={"extra_data": {"path": request.url.path, **exc.details}}
            )
        else:
            logger.info(
                f"Request rejected: {exc.code}",
                extra={"extra_data": {"path": request.url.path, "reason": exc.message}}
            )
        return _error_response(exc.code, exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(
            "Request validation failed",
            extra={"extra_data": {"path": request.url.path, "errors": exc.errors()}}
        )
        detail = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        return _error_response(InvalidArgument.code, detail or "Invalid request", InvalidArgument.status_code)

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            f"Unhandled storage error: {exc}",
            extra={"extra_data": {"path": request.url.path}}
        )
        return _error_response(StorageFailure.code, "Message store unavailable", StorageFailure.status_code)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    setup_logging()
    logger = get_logger(__name__)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Buyer/seller messaging for the marketplace: conversations, message threads and read state",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)

    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(health.router)
    app.include_router(metrics.router)

    logger.info(
        "Application created",
        extra={
            "extra_data": {
                "app_name": settings.app_name,
                "version": settings.app_version,
                "debug": settings.debug,
            }
        }
    )

    return app


app = create_app()

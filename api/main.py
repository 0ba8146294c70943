"""Main FastAPI application entrypoint."""

import logging
import time
from contextlib import asynccontextmanager

import logfire
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routers import dao as dao_router
from api.routers import predictions as predictions_router
from core.config import AppSettings
from core.initialization import initialize_system
from observability.logging import setup_logging
from schemas.event_log import utc_timestamp
from storage.predictions import (
    DuplicateVoteError,
    PredictionClosedError,
    PredictionNotFoundError,
)

load_dotenv()

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the services on startup and release them on shutdown."""
    setup_logging()
    logger.info("Starting up Inverstra API...")
    try:
        logfire.configure(send_to_logfire="if-token-present")
        logfire.instrument_httpx()
    except Exception:
        logger.exception("Failed to configure Logfire.")
    try:
        app.state.services = await initialize_system(settings=app.state.settings)
        logger.info("System initialized successfully.")
    except Exception:
        # Requests answer 503 until the process is restarted with a valid setup
        logger.exception("System initialization failed during startup.")
    yield
    logger.info("Shutting down Inverstra API...")
    services = getattr(app.state, "services", None)
    if services is not None:
        await services.aclose()


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
    )


def _register_exception_handlers(app: FastAPI, settings: AppSettings) -> None:
    @app.exception_handler(PredictionNotFoundError)
    async def prediction_not_found(request: Request, exc: PredictionNotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(DuplicateVoteError)
    async def duplicate_vote(request: Request, exc: DuplicateVoteError):
        return _error(409, str(exc))

    @app.exception_handler(PredictionClosedError)
    async def prediction_closed(request: Request, exc: PredictionClosedError):
        return _error(409, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error(404, "Route not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        if settings.is_development:
            return _error(500, "Something went wrong!", error=str(exc))
        return _error(500, "Something went wrong!")


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Build the application with CORS, error handlers and routers attached."""
    settings = settings or AppSettings.from_env()

    app = FastAPI(
        title="Inverstra API",
        description="Prediction DAO backend on Cardano.",
        version="0.1.0",
        lifespan=lifespan,
    )
    # The lifespan builds the services from these settings, not the environment
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=settings.allowed_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    _register_exception_handlers(app, settings)

    app.include_router(dao_router.router)
    app.include_router(predictions_router.router)

    @app.get("/", tags=["Status"])
    async def read_root():
        """Root endpoint for basic API status check."""
        return {
            "message": "Inverstra backend is running",
            "status": "Connected",
            "timestamp": utc_timestamp(),
        }

    @app.get("/api/health", tags=["Status"])
    async def health():
        return {
            "status": "OK",
            "message": "Server is healthy",
            "uptime": round(time.monotonic() - _STARTED_AT, 3),
            "timestamp": utc_timestamp(),
        }

    return app


app = create_app()

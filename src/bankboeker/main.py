"""Bankboeker - FastAPI application for bank transaction automation."""

import time
import traceback
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy import text

from bankboeker.config import Settings, settings
from bankboeker.database import create_engine, create_session_maker, init_db
from bankboeker.deps import DbSession
from bankboeker.logger import configure_logging, get_logger
from bankboeker.routers import bank_automation
from bankboeker.services import build_automation_service

logger = get_logger(__name__)

VERSION = "0.1.0"


def _build_lifespan(config: Settings) -> Callable[[FastAPI], Any]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the engine, schema and automation service on startup."""
        configure_logging(config)
        engine = create_engine(config.database_url, echo=config.debug)
        await init_db(engine)

        app.state.engine = engine
        app.state.session_maker = create_session_maker(engine)
        app.state.automation = build_automation_service(config, app.state.session_maker)
        logger.info("Application started", version=VERSION, environment=config.environment)
        yield
        await engine.dispose()
        logger.info("Application shutting down")

    return lifespan


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings
    app = FastAPI(
        title="Bankboeker API",
        description="Bank transaction categorization and double-entry booking",
        version=VERSION,
        lifespan=_build_lifespan(config),
    )
    app.state.config = config

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next: Any) -> Response:
        """Middleware to inject Request-ID and log request details."""
        request_id = request.headers.get("X-Request-ID", str(uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(
                "HTTP Request Failed",
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
            )
            raise

        logger.info(
            "HTTP Request",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler to ensure JSON response."""
        # Only show exception details in DEBUG mode
        if config.debug:
            detail = str(exc)
            trace = traceback.format_exc()
        else:
            detail = "An internal server error occurred. Please try again later."
            trace = None

        return JSONResponse(
            status_code=500,
            content={
                "detail": detail,
                "trace": trace,
                "request_id": structlog.contextvars.get_contextvars().get("request_id"),
            },
        )

    app.include_router(bank_automation.router)

    @app.get("/health")
    async def health_check(db: DbSession) -> Response:
        """Return 200 when the database answers, 503 otherwise."""
        checks: dict[str, bool] = {}
        try:
            await db.execute(text("SELECT 1"))
            checks["database"] = True
        except Exception as exc:
            logger.error("Health check: database unavailable", error=str(exc))
            checks["database"] = False

        healthy = all(checks.values())
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "unhealthy",
                "timestamp": datetime.now(UTC).isoformat(),
                "checks": checks,
                "version": VERSION,
                "search_enabled": config.search_enabled,
                "llm_enabled": config.llm_enabled,
            },
        )

    return app


app = create_app()

"""FastAPI application serving the SchedTrack project API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from schedtrack import __version__
from schedtrack.config import AppConfig
from schedtrack.core.logging import configure_logging
from schedtrack.exceptions import StoreOperationError
from schedtrack.store.sql_store import SqlProjectStore
from schedtrack.web.routes import health, imports, projects

logger = structlog.get_logger()

API_PREFIX = "/api"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


async def store_error_handler(request: Request, exc: StoreOperationError):
    """Unhandled store failures surface as 503 with the error text."""
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def create_app(
    config: AppConfig | None = None, api_prefix: str = API_PREFIX
) -> FastAPI:
    """Build the API application.

    Args:
        config: Application configuration (default: loaded from environment)
        api_prefix: Mount point of the project and import routes

    Returns:
        FastAPI app whose store is created on startup and closed on shutdown
    """
    config = config or AppConfig.from_env()
    configure_logging(config.log_level, config.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = SqlProjectStore.from_config(config.store)
        await store.init()
        app.state.store = store
        logger.info("store_ready", url=config.store.url)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        title="SchedTrack API",
        description="Saved project schedules and their change history",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(StoreOperationError, store_error_handler)

    app.include_router(health.router)
    app.include_router(projects.router, prefix=api_prefix)
    app.include_router(imports.router, prefix=api_prefix)

    return app

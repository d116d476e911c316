"""Postboard web application.

Server-rendered feed with accounts, server-side sessions in Redis and file
uploads stored in MinIO.
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings, get_settings
from .core.exceptions import (
    DatabaseError,
    PostboardException,
    RedirectRequired,
    SessionStoreError,
)
from .routes import render, router
from .schemas import HealthResponse
from .services import Services
from .sessions import ServerSessionMiddleware

STATIC_DIR = Path(__file__).parent / "static"


def configure_logging(level: str = "INFO") -> None:
    """Send loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[Services] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted
        services: Pre-built service handles. When omitted they are created
            on startup, after the readiness gate, and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        owned = services is None
        if owned:
            app.state.services = await Services.connect(settings)
        logger.info("Postboard started")
        yield
        if owned:
            await app.state.services.close()
        logger.info("Postboard shutting down")

    app = FastAPI(
        title="Postboard",
        description="Minimal social posting application",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    if services is not None:
        app.state.services = services

    app.add_middleware(
        ServerSessionMiddleware,
        secret=settings.SESSION_SECRET,
        cookie_name=settings.SESSION_COOKIE,
        max_age=settings.SESSION_TTL_SECONDS,
    )

    @app.exception_handler(RedirectRequired)
    async def redirect_handler(request: Request, exc: RedirectRequired):
        return RedirectResponse(exc.location, status_code=303)

    @app.exception_handler(PostboardException)
    async def postboard_exception_handler(request: Request, exc: PostboardException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.warning(f"{request.method} {request.url.path}: {exc}")
        return render(request, "error.html", status_code=exc.status_code, message=exc.message)

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        error = DatabaseError(str(exc))
        logger.opt(exception=exc).error(f"{request.method} {request.url.path} failed: {error}")
        return render(request, "error.html", status_code=error.status_code, message=error.message)

    @app.exception_handler(RedisError)
    async def session_store_exception_handler(request: Request, exc: RedisError):
        error = SessionStoreError(str(exc))
        logger.opt(exception=exc).error(f"{request.method} {request.url.path} failed: {error}")
        return render(request, "error.html", status_code=error.status_code, message=error.message)

    app.include_router(router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check():
        """Health check endpoint."""
        return HealthResponse()

    if STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    return app


def run():
    """Run the server."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "postboard.main:create_app",
        factory=True,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
    )


if __name__ == "__main__":
    run()

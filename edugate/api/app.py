# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the edugate API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from edugate import __version__
from edugate.api.middleware.auth import AuthMiddleware
from edugate.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from edugate.api.routes import health
from edugate.api.v1 import router as v1_router
from edugate.core.config import get_settings
from edugate.infrastructure.database.connection import (
    close_database,
    create_schema,
    init_database,
)
from edugate.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Configures logging and opens the database pool on startup, and closes
    the pool on shutdown. SQLite databases (local runs) get their schema
    created directly; PostgreSQL is managed by Alembic migrations.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting edugate API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    await init_database(settings)
    if settings.db.is_sqlite:
        await create_schema()
    logger.info("Database connection initialized")

    yield

    await close_database()
    logger.info("Shutting down edugate API")


async def json_http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> Response:
    """Render dict details as the response body.

    Gate dependencies raise HTTPException(detail={"error": ...}); other
    HTTP errors keep FastAPI's {"detail": ...} shape.
    """
    if isinstance(exc.detail, dict):
        if exc.status_code >= 500:
            logger.warning("HTTP %s on %s: %s", exc.status_code, request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
            headers=getattr(exc, "headers", None),
        )
    return await http_exception_handler(request, exc)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="edugate API",
        description="Grade and subscription based access control",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Avoid 307 redirects that drop the Authorization header
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.limiter = limiter

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(StarletteHTTPException, json_http_exception_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(SlowAPIMiddleware)

    # Auth runs before rate limiting so limits are keyed per user
    app.add_middleware(AuthMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app

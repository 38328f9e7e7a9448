"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import AsyncConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.api.auth import router as auth_router
from src.api.dependencies import get_repository
from src.api.errors import register_exception_handlers
from src.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from src.api.models import HealthResponse
from src.config.settings import Settings, get_settings
from src.domain.ports import AccountRepository

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "Registration with email confirmation, login and logout",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Creates the shared HTTP client for outbound API calls
    - Closes both on shutdown
    """
    settings: Settings = app.state.settings

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = AsyncConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=False,
    )
    await pool.open()

    # Run migrations
    logger.info("Running database migrations...")
    await run_migrations(pool)

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.http_client = httpx.AsyncClient()

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await app.state.http_client.aclose()
    await pool.close()
    logger.info("Database connection pool closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application around one explicit settings object.

    Args:
        settings: Configuration; defaults to the environment-derived settings
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="quiz-auth",
        description="Email-confirmed registration and session service for Quiz",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    register_exception_handlers(app)

    # Last added runs first: CORS wraps rate limiting wraps security headers
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        register_limit=settings.register_rate_limit,
        api_limit=settings.api_rate_limit,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix="/auth")

    @app.get("/health", response_model=HealthResponse)
    async def health_check(
        request: Request,
        repository: AccountRepository = Depends(get_repository),
    ) -> HealthResponse:
        """
        Health check endpoint with database validation.

        Returns 200 OK if application and database are healthy.
        Raises exception if database connection fails.
        """
        await repository.ping()

        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(UTC).isoformat(),
            uptime=time.monotonic() - request.app.state.started_at,
        )

    return app


app = create_app()

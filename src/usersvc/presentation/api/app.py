"""FastAPI application factory.

Creates and configures the FastAPI application with the users router,
middleware, and exception handlers.

API Versioning:
    All API endpoints are versioned under /api/v1/ prefix.
    The health check and info endpoints remain unversioned at /health and /.
"""

import logging
import sys
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from sqlalchemy.exc import SQLAlchemyError

from usersvc.infrastructure.persistence.sqlalchemy import DatabaseConnection
from usersvc.presentation.api.dependencies import Database
from usersvc.presentation.api.exception_handlers import (
    collect_available_routes,
    setup_exception_handlers,
)
from usersvc.presentation.api.middleware import (
    BodySizeLimitMiddleware,
    FixedWindowRateLimiter,
    RateLimitMiddleware,
)
from usersvc.presentation.api.routers import users_router
from usersvc.presentation.api.schemas import HealthResponse
from usersvc_config.settings import Settings, get_settings


@lru_cache(maxsize=1)
def _configure_logging(log_level_str: str) -> None:
    """Configure application logging.

    Sets up logging for the service with:
    - Console output with timestamps and module names
    - Configurable log level for usersvc modules (from settings)
    - WARNING level for noisy third-party libraries
    """
    log_level = getattr(logging, log_level_str, logging.INFO)

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt=date_format,
        stream=sys.stdout,
        force=True,  # Override any existing config
    )

    logging.getLogger("usersvc").setLevel(log_level)
    logging.getLogger("usersvc_config").setLevel(log_level)

    # Quiet down noisy third-party loggers
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

# API version info
API_VERSION = "1.0.0"
API_V1_PREFIX = "/api/v1"

OPENAPI_TAGS = [
    {
        "name": "Users",
        "description": """User records: create, read, update, delete.

**Listing:**
- Filter by `name` / `email` (substring, any case) and `minAge` / `maxAge`
- Sort by `name`, `email`, `age` or `created_at`, `ASC` or `DESC`
- Paginate with `page` and `limit` (at most 100 per page)

**Rules:**
- Emails are trimmed, lower-cased and unique
- Names are 2-100 characters; ages 0-100 or null
""",
    },
    {
        "name": "Health",
        "description": "Service health monitoring endpoints.",
    },
    {
        "name": "Info",
        "description": "API information and discovery.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings

    # Startup
    logger.info(
        "Starting %s v%s (%s)...",
        settings.app_name,
        API_VERSION,
        settings.environment,
    )
    database = DatabaseConnection.from_settings(settings)
    await _init_database(database, settings)
    app.state.database = database
    yield

    # Shutdown - dispose the shared engine and its connection pool
    logger.info("Shutting down %s...", settings.app_name)
    await database.close()
    app.state.database = None


async def _init_database(database: DatabaseConnection, settings: Settings) -> None:
    """Verify connectivity and create the schema (if not existent)."""
    try:
        await database.initialize()
    except (SQLAlchemyError, OSError):
        logger.critical("Could not connect to the database.")
        await database.close()
        raise SystemExit(1) from None

    if settings.db_auto_create_schema:
        await database.create_schema()


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all endpoints."""
    v1_router = APIRouter()
    v1_router.include_router(users_router, prefix="/users", tags=["Users"])
    return v1_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings
        Optional settings override for testing.

    Returns
    -------
    Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    # Configure logging on first app creation (not on module import)
    _configure_logging(settings.effective_log_level)

    app_name = settings.app_name
    show_docs = settings.api_debug or not settings.is_production

    app = FastAPI(
        title=app_name,
        description="CRUD service for **user records** backed by PostgreSQL.",
        version=API_VERSION,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
        openapi_url="/openapi.json" if show_docs else None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.state.settings = settings
    app.state.database = None

    # Added last runs first: the rate limiter sees every request
    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_bytes=settings.api_max_body_bytes,
    )
    if settings.rate_limit_enabled:
        app.state.rate_limiter = FixedWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
        app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiter)

    # Register exception handlers for consistent error responses
    setup_exception_handlers(app)

    # Include versioned API router
    app.include_router(create_v1_router(), prefix=API_V1_PREFIX)

    # Health check endpoint (unversioned - always accessible)
    @app.get("/health", tags=["Health"])
    async def health_check(database: Database) -> HealthResponse:
        """Health check endpoint.

        Returns service status, environment and connection pool counters.
        Unversioned for load balancer/monitoring compatibility.
        """
        return HealthResponse(
            status="OK",
            message="Server is running",
            environment=settings.environment,
            version=API_VERSION,
            database=database.pool_stats(),
        )

    # Root endpoint with API info
    @app.get("/", tags=["Info"])
    async def root() -> dict:
        """API root endpoint with version information."""
        return {
            "name": app_name,
            "version": API_VERSION,
            "docs": "/docs" if show_docs else None,
            "api_base": API_V1_PREFIX,
            "endpoints": {
                "health": "/health",
                "users": f"{API_V1_PREFIX}/users",
            },
        }

    # Full "METHOD /path" listing for 404 responses
    app.state.available_routes = collect_available_routes(app)

    return app

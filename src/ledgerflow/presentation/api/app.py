"""FastAPI application factory.

Creates and configures the FastAPI application with all routers,
middleware, and exception handlers.

API Versioning:
    All API endpoints are versioned under /api/v1/ prefix.
    The health check endpoint remains unversioned at /health.
"""

import logging
import sys
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine

from ledgerflow.infrastructure.integration.provider import HttpTransactionProvider
from ledgerflow.infrastructure.persistence.sqlalchemy.models import Base
from ledgerflow.presentation.api.dependencies import (
    get_engine,
    get_job_scheduler,
    get_transaction_provider,
)
from ledgerflow.presentation.api.exception_handlers import (
    setup_exception_handlers,
)
from ledgerflow.presentation.api.routers import imports_router, webhooks_router
from ledgerflow_config.settings import Settings, get_settings


@lru_cache(maxsize=1)
def _configure_logging() -> None:
    """Configure application logging.

    Sets up logging for the ledgerflow application with:
    - Console output with timestamps and module names
    - Configurable log level for ledgerflow modules (from settings)
    - WARNING level for noisy third-party libraries
    """
    settings = get_settings()
    log_level_str = settings.log_level.upper()
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

    logging.getLogger("ledgerflow").setLevel(log_level)
    logging.getLogger("ledgerflow_config").setLevel(log_level)

    # Quiet down noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

# API version info
API_VERSION = "1.0.0"
API_V1_PREFIX = "/api/v1"

# OpenAPI tags metadata for documentation
OPENAPI_TAGS = [
    {
        "name": "Imports",
        "description": """Transaction imports from uploads and the bank-data provider.

**Inline vs. background:**
- Imports below the configured threshold (default 1000 records) run inline
  and return their counts (`200`)
- Larger imports, or any with `force_async`, become a background job (`202`)
  whose progress is read from `/imports/jobs/{job_id}`

**Job Statuses:**
- `pending` - Queued, not started yet
- `processing` - Batches are being written
- `completed` - All records processed (some may be skipped or errors)
- `failed` - Stopped by a fatal error (see error_message)

**Counters:**
- `synced_items` - New ledger transactions
- `skipped_items` - Already in the ledger, never written twice
- `error_items` - Records that could not be imported
""",
    },
    {
        "name": "Webhooks",
        "description": "Notifications from the bank-data provider.",
    },
    {
        "name": "Health",
        "description": "Service health monitoring endpoints.",
    },
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Ledgerflow API v%s...", API_VERSION)
    engine = get_engine()
    await _init_database_schema(engine)
    await get_job_scheduler().fail_interrupted_jobs()
    await _resume_pending_jobs()
    yield

    # Shutdown
    logger.info("Shutting down Ledgerflow API...")
    await get_job_scheduler().shutdown()
    provider = get_transaction_provider()
    if isinstance(provider, HttpTransactionProvider):
        await provider.close()
    await engine.dispose()
    logger.info("Database connections closed")


async def _init_database_schema(engine: AsyncEngine) -> None:
    """Initialize database schema (if not existent) and verify connectivity."""
    logger.info("Initializing database schema...")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except ConnectionRefusedError:
        logger.critical("Could not connect to the database.")
        raise SystemExit(1) from None

    logger.info("Database schema initialized successfully")


async def _resume_pending_jobs() -> None:
    """Pick up background jobs that were queued before the last shutdown."""
    limit = get_settings().resume_pending_jobs_limit
    if limit <= 0:
        return
    resumed = await get_job_scheduler().resume_pending_jobs(limit)
    if not resumed:
        logger.info("No pending import jobs to resume")


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all endpoints.

    Returns
    -------
    APIRouter with all v1 endpoints mounted.
    """
    v1_router = APIRouter()

    v1_router.include_router(imports_router, prefix="/imports", tags=["Imports"])
    v1_router.include_router(webhooks_router, prefix="/webhooks", tags=["Webhooks"])

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
    # Configure logging on first app creation (not on module import)
    _configure_logging()

    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description=(
            "Idempotent **transaction import and synchronization** from bank "
            "data providers and file uploads, with live job progress."
        ),
        version=API_VERSION,
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        openapi_url="/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register domain exception handlers for consistent error responses
    setup_exception_handlers(app)

    # Include versioned API router
    app.include_router(create_v1_router(), prefix=API_V1_PREFIX)

    # Health check endpoint (unversioned - always accessible)
    @app.get("/health", tags=["Health"])
    async def health_check() -> dict:
        """Health check endpoint.

        Returns service status and version info.
        Unversioned for load balancer/monitoring compatibility.
        """
        return {
            "status": "healthy",
            "version": API_VERSION,
            "api_versions": ["v1"],
        }

    return app


# Application instance for uvicorn
app = create_app()

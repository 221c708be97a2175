"""Database initialization utilities."""

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

# Import models to register with Base.metadata
import ledgerflow.infrastructure.persistence.sqlalchemy.models  # noqa: F401
from ledgerflow.infrastructure.persistence.sqlalchemy.models.base import Base
from ledgerflow_config.settings import get_settings

logger = logging.getLogger(__name__)


def _get_engine() -> AsyncEngine:
    """Get the database engine for initialization."""
    settings = get_settings()
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,
    )


async def create_tables(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create all database tables (idempotent).

    Uses SQLAlchemy's create_all() which only creates missing tables.
    Existing tables and their data are never modified or deleted.
    """
    owns_engine = engine is None
    engine = engine or _get_engine()
    logger.info("Ensuring all database tables exist...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if owns_engine:
        await engine.dispose()
    logger.info("Database schema is up to date (missing tables created if needed)")


def db_init():
    """Initialize database (create tables)."""
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_tables())

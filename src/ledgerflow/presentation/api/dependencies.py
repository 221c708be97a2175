"""FastAPI dependency injection for the Ledgerflow API.

Provides dependencies for:
- Database sessions
- User context for repository scoping (from gateway headers)
- Import engine collaborators (provider, scheduler, broadcaster)
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ledgerflow.application.context import UserContext
from ledgerflow.application.ports import TransactionProviderPort
from ledgerflow.application.services import ImportOrchestrator, ImportSettings
from ledgerflow.infrastructure.integration.provider import HttpTransactionProvider
from ledgerflow.infrastructure.notifications import InMemoryJobChangeBroadcaster
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)
from ledgerflow.infrastructure.scheduling import AsyncioJobScheduler
from ledgerflow_config.settings import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_database_url() -> str:
    """
    Get database URL from application settings.

    Returns
    -------
    Database URL string
    """
    url = get_settings().database_url

    # Ensure data directory exists for SQLite
    if url.startswith("sqlite") and ":memory:" not in url:
        db_path = url.split("///")[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return url


# -----------------------------------------------------------------------------
# Database Engine & Session (Singleton)
# -----------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """
    Get the shared async database engine (singleton).

    Returns
    -------
    AsyncEngine instance
    """
    return create_async_engine(
        get_database_url(),
        echo=False,
        pool_pre_ping=True,  # Verify connections before use
    )


@lru_cache(maxsize=1)
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Get the shared async session maker (singleton).

    Returns
    -------
    async_sessionmaker configured with the shared engine
    """
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields
    ------
    AsyncSession for database operations
    """
    async with get_session_maker()() as session:
        yield session


# Type alias for injected session
DBSession = Annotated[AsyncSession, Depends(get_db_session)]


# -----------------------------------------------------------------------------
# User Context & Repository Factory
# -----------------------------------------------------------------------------


def _parse_uuid_header(name: str, value: str) -> UUID:
    try:
        return UUID(value.strip())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {name} header",
        ) from e


async def get_user_context(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_household_id: Annotated[Optional[str], Header()] = None,
) -> UserContext:
    """
    Get UserContext for repository scoping.

    Authentication happens upstream; the gateway forwards the authenticated
    user in ``X-User-Id`` and, for shared ledgers, ``X-Household-Id``.

    Raises
    ------
    HTTPException
        401 if the user header is missing or malformed
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    user_id = _parse_uuid_header("X-User-Id", x_user_id)
    household_id = (
        _parse_uuid_header("X-Household-Id", x_household_id)
        if x_household_id
        else None
    )
    return UserContext.from_values(user_id=user_id, household_id=household_id)


# Type alias for injected user context
CurrentUserContext = Annotated[UserContext, Depends(get_user_context)]


async def get_repository_factory(
    session: AsyncSession = Depends(get_db_session),
    user_context: UserContext = Depends(get_user_context),
) -> SQLAlchemyRepositoryFactory:
    """
    Get repository factory for the current user.

    The factory creates user-scoped repositories for domain operations.
    """
    return SQLAlchemyRepositoryFactory(
        session=session,
        user_context=user_context,
    )


# Type alias for injected repository factory
RepoFactory = Annotated[SQLAlchemyRepositoryFactory, Depends(get_repository_factory)]


# -----------------------------------------------------------------------------
# Import Engine Collaborators (Singletons)
# -----------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    return ImportSettings.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_transaction_provider() -> TransactionProviderPort:
    """Get the shared HTTP client for the transaction provider."""
    settings = get_settings()
    return HttpTransactionProvider(
        base_url=settings.provider_base_url,
        api_key=settings.provider_api_key.get_secret_value(),
        timeout=settings.provider_timeout,
    )


@lru_cache(maxsize=1)
def get_job_broadcaster() -> InMemoryJobChangeBroadcaster:
    return InMemoryJobChangeBroadcaster()


def build_background_orchestrator(
    factory: SQLAlchemyRepositoryFactory,
) -> ImportOrchestrator:
    """Build the orchestrator that runs scheduled jobs in their own session."""
    return ImportOrchestrator.from_factory(
        factory,
        scheduler=get_job_scheduler(),
        provider=get_transaction_provider(),
        notifier=get_job_broadcaster(),
        settings=get_import_settings(),
    )


@lru_cache(maxsize=1)
def get_job_scheduler() -> AsyncioJobScheduler:
    """Get the shared in-process job scheduler (singleton)."""
    return AsyncioJobScheduler(
        session_maker=get_session_maker(),
        orchestrator_builder=build_background_orchestrator,
    )


async def get_import_orchestrator(
    factory: RepoFactory,
    provider: TransactionProviderPort = Depends(get_transaction_provider),
    scheduler: AsyncioJobScheduler = Depends(get_job_scheduler),
    broadcaster: InMemoryJobChangeBroadcaster = Depends(get_job_broadcaster),
    settings: ImportSettings = Depends(get_import_settings),
) -> ImportOrchestrator:
    """Get an import orchestrator bound to the request's session and user."""
    return ImportOrchestrator.from_factory(
        factory,
        scheduler=scheduler,
        provider=provider,
        notifier=broadcaster,
        settings=settings,
    )


# Type alias for injected orchestrator
Orchestrator = Annotated[ImportOrchestrator, Depends(get_import_orchestrator)]


def clear_dependency_caches() -> None:
    """Forget every cached singleton (useful for tests)."""
    for cached in (
        get_database_url,
        get_engine,
        get_session_maker,
        get_import_settings,
        get_transaction_provider,
        get_job_broadcaster,
        get_job_scheduler,
    ):
        cached.cache_clear()

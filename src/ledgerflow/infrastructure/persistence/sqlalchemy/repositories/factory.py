"""SQLAlchemy repository factory for creating user-scoped repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.import_job_repository import (  # noqa: E501
    ImportJobRepositorySQLAlchemy,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.ledger_transaction_repository import (  # noqa: E501
    LedgerTransactionRepositorySQLAlchemy,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.sync_cursor_repository import (  # noqa: E501
    SyncCursorRepositorySQLAlchemy,
)

if TYPE_CHECKING:
    from ledgerflow.application.context import UserContext


class SQLAlchemyRepositoryFactory:
    """SQLAlchemy implementation of the RepositoryFactory Protocol."""

    def __init__(self, session: AsyncSession, user_context: UserContext):
        self._session = session
        self._user_context = user_context

        # Cached instances (created on demand)
        self._job_repo: ImportJobRepositorySQLAlchemy | None = None
        self._ledger_repo: LedgerTransactionRepositorySQLAlchemy | None = None
        self._cursor_repo: SyncCursorRepositorySQLAlchemy | None = None

    @property
    def user_context(self) -> UserContext:
        return self._user_context

    @property
    def session(self) -> AsyncSession:
        return self._session

    def import_job_repository(self) -> ImportJobRepositorySQLAlchemy:
        if self._job_repo is None:
            self._job_repo = ImportJobRepositorySQLAlchemy(
                self._session,
                self._user_context,
            )
        return self._job_repo

    def ledger_transaction_repository(self) -> LedgerTransactionRepositorySQLAlchemy:
        if self._ledger_repo is None:
            self._ledger_repo = LedgerTransactionRepositorySQLAlchemy(
                self._session,
                self._user_context,
            )
        return self._ledger_repo

    def sync_cursor_repository(self) -> SyncCursorRepositorySQLAlchemy:
        if self._cursor_repo is None:
            self._cursor_repo = SyncCursorRepositorySQLAlchemy(
                self._session,
                self._user_context,
            )
        return self._cursor_repo

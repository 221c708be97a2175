"""Repository factory protocol for application layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from ledgerflow.domain.imports.repositories import (
    ImportJobRepository,
    SyncCursorRepository,
)
from ledgerflow.domain.ledger.repositories import LedgerTransactionRepository

if TYPE_CHECKING:
    from ledgerflow.application.context import UserContext


class RepositoryFactory(Protocol):
    """Protocol for creating user-scoped repositories."""

    @property
    def user_context(self) -> UserContext:
        """Get the current user for repository scoping."""
        ...

    @property
    def session(self) -> Any:
        """Get the database session for transaction management.

        The type is intentionally `Any` to avoid coupling the
        application layer to specific database implementations.
        """
        ...

    def import_job_repository(self) -> ImportJobRepository:
        """Get import job repository."""
        ...

    def ledger_transaction_repository(self) -> LedgerTransactionRepository:
        """Get ledger transaction repository."""
        ...

    def sync_cursor_repository(self) -> SyncCursorRepository:
        """Get provider sync cursor repository."""
        ...

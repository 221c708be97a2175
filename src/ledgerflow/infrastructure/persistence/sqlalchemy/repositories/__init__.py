"""SQLAlchemy repository implementations."""

from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.factory import (
    SQLAlchemyRepositoryFactory,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.import_job_repository import (  # noqa: E501
    ImportJobRepositorySQLAlchemy,
    find_job_owners,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.ledger_transaction_repository import (  # noqa: E501
    LedgerTransactionRepositorySQLAlchemy,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.sync_cursor_repository import (  # noqa: E501
    SyncCursorRepositorySQLAlchemy,
)

__all__ = [
    "ImportJobRepositorySQLAlchemy",
    "LedgerTransactionRepositorySQLAlchemy",
    "SQLAlchemyRepositoryFactory",
    "SyncCursorRepositorySQLAlchemy",
    "find_job_owners",
]

"""SQLAlchemy models."""

from ledgerflow.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.models.import_job_model import (
    ImportJobModel,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.models.ledger_transaction_model import (  # noqa: E501
    LedgerTransactionModel,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.models.sync_cursor_model import (
    SyncCursorModel,
)

__all__ = [
    "Base",
    "ImportJobModel",
    "LedgerTransactionModel",
    "SyncCursorModel",
    "TimestampMixin",
]

"""Translation of database driver errors into import domain errors."""

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError

from ledgerflow.domain.imports.exceptions import (
    RecordWriteError,
    StorageUnavailableError,
)
from ledgerflow.domain.shared.exceptions import DomainException


def translate_write_error(error: Exception) -> DomainException:
    """Map a failed write to StorageUnavailableError or RecordWriteError."""
    if isinstance(error, (OperationalError, InterfaceError, OSError)):
        return StorageUnavailableError(f"Ledger storage is unavailable: {error}")
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return StorageUnavailableError("Ledger storage connection was lost")
    return RecordWriteError(
        "Ledger storage rejected the write",
        details={"error": str(error)},
    )

"""Import domain repository interfaces."""

from ledgerflow.domain.imports.repositories.import_job_repository import (
    ImportJobRepository,
)
from ledgerflow.domain.imports.repositories.sync_cursor_repository import (
    SyncCursorRepository,
)

__all__ = [
    "ImportJobRepository",
    "SyncCursorRepository",
]

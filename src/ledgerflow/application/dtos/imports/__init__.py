"""Import DTOs."""

from ledgerflow.application.dtos.imports.import_job_status import ImportJobStatusDTO
from ledgerflow.application.dtos.imports.import_result import (
    StartImportResult,
    SyncImportResult,
)
from ledgerflow.application.dtos.imports.import_source import (
    ImportSource,
    ProviderSource,
    UploadSource,
)

__all__ = [
    "ImportJobStatusDTO",
    "ImportSource",
    "ProviderSource",
    "StartImportResult",
    "SyncImportResult",
    "UploadSource",
]

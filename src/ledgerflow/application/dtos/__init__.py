"""Application layer DTOs."""

from ledgerflow.application.dtos.imports import (
    ImportJobStatusDTO,
    ImportSource,
    ProviderSource,
    StartImportResult,
    SyncImportResult,
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

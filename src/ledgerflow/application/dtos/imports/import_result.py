"""Result DTOs returned by the import orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from uuid import UUID


@dataclass(frozen=True)
class SyncImportResult:
    """Final (or, when cancelled, partial) counts of an inline import."""

    total_items: int
    processed_items: int
    synced_items: int
    skipped_items: int
    error_items: int
    cancelled: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.cancelled and self.error_items == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_items": self.total_items,
            "processed_items": self.processed_items,
            "synced_items": self.synced_items,
            "skipped_items": self.skipped_items,
            "error_items": self.error_items,
            "cancelled": self.cancelled,
            "success": self.success,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class StartImportResult:
    """Either an inline result or the ID of a background job, never both."""

    sync_result: Optional[SyncImportResult] = None
    job_id: Optional[UUID] = None

    def __post_init__(self) -> None:
        if (self.sync_result is None) == (self.job_id is None):
            msg = "StartImportResult needs exactly one of sync_result or job_id"
            raise ValueError(msg)

    @property
    def is_background(self) -> bool:
        return self.job_id is not None

    @classmethod
    def inline(cls, result: SyncImportResult) -> StartImportResult:
        return cls(sync_result=result)

    @classmethod
    def background(cls, job_id: UUID) -> StartImportResult:
        return cls(job_id=job_id)

"""Read model of an import job's progress."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID

if TYPE_CHECKING:
    from ledgerflow.domain.imports import ImportJob


@dataclass(frozen=True)
class ImportJobStatusDTO:
    """Snapshot of persisted job counters, served to pollers and subscribers."""

    job_id: UUID
    job_type: str
    account_id: Optional[UUID]
    status: str
    progress: int
    total_items: int
    processed_items: int
    synced_items: int
    skipped_items: int
    error_items: int
    error_message: Optional[str]
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_final(self) -> bool:
        return self.status in ("completed", "failed")

    @classmethod
    def from_entity(cls, job: ImportJob) -> ImportJobStatusDTO:
        return cls(
            job_id=job.id,
            job_type=job.type.value,
            account_id=job.account_id,
            status=job.status.value,
            progress=job.progress,
            total_items=job.total_items,
            processed_items=job.processed_items,
            synced_items=job.synced_items,
            skipped_items=job.skipped_items,
            error_items=job.error_items,
            error_message=job.error_message,
            created_at=job.created_at,
            updated_at=job.updated_at,
            completed_at=job.completed_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": str(self.job_id),
            "job_type": self.job_type,
            "account_id": str(self.account_id) if self.account_id else None,
            "status": self.status,
            "progress": self.progress,
            "total_items": self.total_items,
            "processed_items": self.processed_items,
            "synced_items": self.synced_items,
            "skipped_items": self.skipped_items,
            "error_items": self.error_items,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
        }

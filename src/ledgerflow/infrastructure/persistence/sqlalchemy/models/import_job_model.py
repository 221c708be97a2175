"""SQLAlchemy model for ImportJob entity."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, DateTime, Index, Integer, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from ledgerflow.domain.imports import JobStatus, JobType
from ledgerflow.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class ImportJobModel(Base, TimestampMixin):
    """
    SQLAlchemy model for persisting ImportJob entities.

    Database Constraints:
    - processed_items = synced_items + skipped_items + error_items
    - processed_items <= total_items
    - If status = 'failed', error_message must not be NULL
    """

    __tablename__ = "import_jobs"

    __table_args__ = (
        CheckConstraint(
            "processed_items = synced_items + skipped_items + error_items",
            name="check_import_job_counter_conservation",
        ),
        CheckConstraint(
            "processed_items <= total_items",
            name="check_import_job_processed_within_total",
        ),
        CheckConstraint(
            "(status != 'failed' OR error_message IS NOT NULL)",
            name="check_import_job_failed_has_error_message",
        ),
        Index("ix_import_jobs_user_created", "user_id", "created_at"),
        Index("ix_import_jobs_status_created", "status", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)

    # Null for jobs spanning several accounts
    account_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

    job_type: Mapped[JobType] = mapped_column(
        SQLEnum(
            JobType,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
        ),
        nullable=False,
    )
    status: Mapped[JobStatus] = mapped_column(
        SQLEnum(
            JobStatus,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
        ),
        default=JobStatus.PENDING,
        nullable=False,
    )

    total_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    processed_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    synced_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    skipped_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_items: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Everything a background run needs (uploaded records or account IDs)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<ImportJobModel(id={self.id}, "
            f"status={self.status.value}, "
            f"processed={self.processed_items}/{self.total_items})>"
        )

"""SQLAlchemy model for provider sync cursors."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ledgerflow.domain.shared.time import utc_now
from ledgerflow.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class SyncCursorModel(Base, TimestampMixin):
    """Last fully applied provider cursor per user and account."""

    __tablename__ = "provider_sync_cursors"

    __table_args__ = (
        UniqueConstraint("user_id", "account_id", name="uq_sync_cursor_user_account"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    account_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    cursor: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_synced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SyncCursorModel(account={self.account_id}, cursor={self.cursor!r})>"

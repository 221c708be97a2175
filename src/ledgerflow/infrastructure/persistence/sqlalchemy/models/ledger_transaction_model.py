"""SQLAlchemy model for LedgerTransaction entity."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import Date, DateTime, Index, Numeric, String, Text, Uuid, text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from ledgerflow.domain.ledger import TransactionType
from ledgerflow.infrastructure.persistence.sqlalchemy.models.base import (
    Base,
    TimestampMixin,
)


class LedgerTransactionModel(Base, TimestampMixin):
    """
    SQLAlchemy model for persisting LedgerTransaction entities.

    Deduplication Strategy:
    - external_id is unique per account among live (not soft-deleted) rows
    - Enforced by a partial unique index, which the import's
      insert-or-ignore relies on to settle concurrent imports
    """

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        Index(
            "uq_ledger_tx_account_external_live",
            "account_id",
            "external_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND external_id IS NOT NULL"),
            sqlite_where=text("deleted_at IS NULL AND external_id IS NOT NULL"),
        ),
        Index("ix_ledger_tx_user_date", "user_id", "transaction_date"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    account_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    household_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True)

    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(
            TransactionType,
            values_callable=lambda x: [e.value for e in x],
            native_enum=False,
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    external_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # Suggestions made at import time
    category_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    subcategory_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerTransactionModel(id={self.id}, "
            f"account={self.account_id}, external_id={self.external_id})>"
        )

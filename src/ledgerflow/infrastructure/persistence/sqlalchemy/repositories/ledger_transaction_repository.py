"""SQLAlchemy implementation of LedgerTransactionRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.domain.ledger import LedgerTransaction, LedgerTransactionRepository
from ledgerflow.infrastructure.persistence.sqlalchemy.models import (
    LedgerTransactionModel,
)
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories.errors import (
    translate_write_error,
)

if TYPE_CHECKING:
    from ledgerflow.application.context import UserContext

# Must match the predicate of the partial unique index on the model.
_LIVE_WITH_EXTERNAL_ID = and_(
    LedgerTransactionModel.deleted_at.is_(None),
    LedgerTransactionModel.external_id.isnot(None),
)


class LedgerTransactionRepositorySQLAlchemy(LedgerTransactionRepository):
    """SQLAlchemy implementation of LedgerTransactionRepository.

    Dedup lookups are keyed by account only, the same scope as the unique
    index, so they agree with what the insert will accept.
    """

    def __init__(self, session: AsyncSession, user_context: UserContext):
        self._session = session
        self._user_id = user_context.user_id

    async def find_existing_external_ids(
        self,
        account_id: UUID,
        external_ids: Iterable[str],
    ) -> set[str]:
        ids = list(external_ids)
        if not ids:
            return set()

        stmt = select(LedgerTransactionModel.external_id).where(
            LedgerTransactionModel.account_id == account_id,
            LedgerTransactionModel.external_id.in_(ids),
            LedgerTransactionModel.deleted_at.is_(None),
        )
        result = await self._session.execute(stmt)
        return {row for row in result.scalars().all() if row is not None}

    async def add_batch(self, transactions: list[LedgerTransaction]) -> set[UUID]:
        if not transactions:
            return set()

        stmt = self._insert_ignoring_conflicts(
            [self._domain_to_row(tx) for tx in transactions],
        )
        try:
            result = await self._session.execute(stmt)
        except (DBAPIError, OSError) as e:
            raise translate_write_error(e) from e
        return set(result.scalars().all())

    async def add(self, transaction: LedgerTransaction) -> bool:
        inserted = await self.add_batch([transaction])
        return transaction.id in inserted

    async def find_by_external_id(
        self,
        account_id: UUID,
        external_id: str,
    ) -> Optional[LedgerTransaction]:
        stmt = select(LedgerTransactionModel).where(
            LedgerTransactionModel.user_id == self._user_id,
            LedgerTransactionModel.account_id == account_id,
            LedgerTransactionModel.external_id == external_id,
            LedgerTransactionModel.deleted_at.is_(None),
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        return self._model_to_domain(model)

    async def count_for_account(self, account_id: UUID) -> int:
        stmt = select(func.count(LedgerTransactionModel.id)).where(
            LedgerTransactionModel.account_id == account_id,
            LedgerTransactionModel.deleted_at.is_(None),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    def _insert_ignoring_conflicts(self, rows: list[dict[str, Any]]):
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            msg = f"Unsupported database dialect for imports: {dialect}"
            raise ValueError(msg)

        return (
            insert(LedgerTransactionModel)
            .values(rows)
            .on_conflict_do_nothing(
                index_elements=[
                    LedgerTransactionModel.account_id,
                    LedgerTransactionModel.external_id,
                ],
                index_where=_LIVE_WITH_EXTERNAL_ID,
            )
            .returning(LedgerTransactionModel.id)
        )

    @staticmethod
    def _domain_to_row(tx: LedgerTransaction) -> dict[str, Any]:
        return {
            "id": tx.id,
            "account_id": tx.account_id,
            "user_id": tx.user_id,
            "household_id": tx.household_id,
            "transaction_date": tx.date,
            "transaction_type": tx.type,
            "amount": tx.amount,
            "external_id": tx.external_id,
            "description": tx.description,
            "category_id": tx.category_id,
            "subcategory_id": tx.subcategory_id,
            "deleted_at": tx.deleted_at,
            "created_at": tx.created_at,
            "updated_at": tx.updated_at,
        }

    def _model_to_domain(self, model: LedgerTransactionModel) -> LedgerTransaction:
        return LedgerTransaction.reconstitute(
            id=model.id,
            account_id=model.account_id,
            user_id=model.user_id,
            transaction_date=model.transaction_date,
            transaction_type=model.transaction_type,
            amount=model.amount,
            external_id=model.external_id,
            description=model.description,
            household_id=model.household_id,
            category_id=model.category_id,
            subcategory_id=model.subcategory_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
            deleted_at=model.deleted_at,
        )

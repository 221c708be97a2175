"""Writes bounded batches of mapped transactions to the ledger."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ledgerflow.domain.imports import BatchResult, RecordOutcome
from ledgerflow.domain.imports.exceptions import RecordWriteError
from ledgerflow.domain.ledger import LedgerTransaction, LedgerTransactionRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class BatchApplier:
    """
    Applies one batch of mapped transactions and reports per-record outcomes.

    The batch goes out as a single insert that skips dedup-key conflicts.
    Rows the store did not write lost a race with a concurrent import and
    are reported as duplicate conflicts. This is the authoritative dedup
    check.

    If the batch insert fails for another reason, the open transaction is
    rolled back and the records are retried one at a time, each committed
    on its own, so that only the offending records are marked failed.
    Callers must commit earlier batches before applying the next one,
    since that rollback covers everything uncommitted in the session.
    ``StorageUnavailableError`` is never caught here.
    """

    def __init__(
        self,
        ledger_repository: LedgerTransactionRepository,
        db_session: Optional[AsyncSession] = None,
    ):
        self._ledger_repo = ledger_repository
        self._db_session = db_session

    async def apply(self, transactions: list[LedgerTransaction]) -> BatchResult:
        if not transactions:
            return BatchResult.empty()

        try:
            inserted = await self._ledger_repo.add_batch(transactions)
        except RecordWriteError as e:
            logger.warning(
                "Batch write of %d records failed, retrying one by one: %s",
                len(transactions),
                e.message,
            )
            await self._rollback()
            return await self._apply_one_by_one(transactions)

        outcomes = {
            tx.id: (
                RecordOutcome.APPLIED
                if tx.id in inserted
                else RecordOutcome.DUPLICATE_CONFLICT
            )
            for tx in transactions
        }
        return BatchResult(outcomes=outcomes)

    async def _apply_one_by_one(
        self,
        transactions: list[LedgerTransaction],
    ) -> BatchResult:
        outcomes: dict = {}
        for tx in transactions:
            try:
                written = await self._ledger_repo.add(tx)
                await self._commit()
            except RecordWriteError as e:
                await self._rollback()
                logger.warning(
                    "Could not write transaction %s (external id %s): %s",
                    tx.id,
                    tx.external_id,
                    e.message,
                )
                outcomes[tx.id] = RecordOutcome.FAILED
                continue

            outcomes[tx.id] = (
                RecordOutcome.APPLIED if written else RecordOutcome.DUPLICATE_CONFLICT
            )
        return BatchResult(outcomes=outcomes)

    async def _commit(self) -> None:
        if self._db_session is not None:
            await self._db_session.commit()

    async def _rollback(self) -> None:
        if self._db_session is not None:
            await self._db_session.rollback()

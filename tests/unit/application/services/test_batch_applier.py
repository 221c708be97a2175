"""Tests for writing batches of mapped transactions."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from ledgerflow.application.services import BatchApplier
from ledgerflow.domain.imports.exceptions import StorageUnavailableError
from ledgerflow.domain.ledger import LedgerTransaction, TransactionType
from tests.shared.fakes import TEST_ACCOUNT_ID, TEST_USER_ID, InMemoryLedgerRepository


def _transactions(*external_ids: str) -> list[LedgerTransaction]:
    return [
        LedgerTransaction(
            account_id=TEST_ACCOUNT_ID,
            user_id=TEST_USER_ID,
            transaction_date=date(2025, 3, 1),
            transaction_type=TransactionType.EXPENSE,
            amount=Decimal("5.00"),
            external_id=external_id,
        )
        for external_id in external_ids
    ]


class TestBatchApplier:
    @pytest.mark.asyncio
    async def test_empty_batch_writes_nothing(self):
        ledger = InMemoryLedgerRepository()

        result = await BatchApplier(ledger).apply([])

        assert result.total == 0
        assert ledger.batch_writes == 0

    @pytest.mark.asyncio
    async def test_all_new_records_are_applied_in_one_write(self):
        ledger = InMemoryLedgerRepository()

        result = await BatchApplier(ledger).apply(_transactions("a", "b", "c"))

        assert result.applied == 3
        assert result.duplicate_conflicts == 0
        assert ledger.batch_writes == 1
        assert ledger.single_writes == 0

    @pytest.mark.asyncio
    async def test_conflicting_rows_are_reported_as_duplicates(self):
        """A concurrent import wrote the same key between dedup and write."""
        ledger = InMemoryLedgerRepository()
        await ledger.add_batch(_transactions("a"))

        result = await BatchApplier(ledger).apply(_transactions("a", "b"))

        assert result.applied == 1
        assert result.duplicate_conflicts == 1
        assert len(ledger.rows) == 2

    @pytest.mark.asyncio
    async def test_failed_batch_falls_back_to_single_writes(self):
        ledger = InMemoryLedgerRepository(failing_external_ids={"bad-1", "bad-2"})
        session = AsyncMock()
        batch = _transactions(*(f"ok-{i}" for i in range(18)), "bad-1", "bad-2")

        result = await BatchApplier(ledger, db_session=session).apply(batch)

        assert result.applied == 18
        assert result.failed == 2
        assert result.duplicate_conflicts == 0
        assert ledger.single_writes == 20
        # One rollback for the failed batch, one per failed record
        assert session.rollback.await_count == 3
        assert session.commit.await_count == 18

    @pytest.mark.asyncio
    async def test_storage_unavailable_is_not_caught(self):
        ledger = InMemoryLedgerRepository()
        ledger.unavailable = True

        with pytest.raises(StorageUnavailableError):
            await BatchApplier(ledger).apply(_transactions("a"))

    @pytest.mark.asyncio
    async def test_outcomes_are_keyed_by_transaction_id(self):
        ledger = InMemoryLedgerRepository(failing_external_ids={"bad"})
        batch = _transactions("good", "bad")

        result = await BatchApplier(ledger).apply(batch)

        assert set(result.outcomes) == {tx.id for tx in batch}

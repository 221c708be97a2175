"""Tests for the LedgerTransaction entity."""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from ledgerflow.domain.ledger import LedgerTransaction, TransactionType

TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")


def _transaction(**overrides) -> LedgerTransaction:
    values = {
        "account_id": uuid4(),
        "user_id": TEST_USER_ID,
        "transaction_date": date(2025, 11, 10),
        "transaction_type": TransactionType.EXPENSE,
        "amount": Decimal("10.00"),
        "external_id": "tx-1",
    }
    values.update(overrides)
    return LedgerTransaction(**values)


class TestLedgerTransaction:
    def test_amount_is_unsigned(self):
        with pytest.raises(ValueError):
            _transaction(amount=Decimal("-1"))

    def test_blank_external_id_is_rejected(self):
        with pytest.raises(ValueError):
            _transaction(external_id="  ")

    @pytest.mark.parametrize(
        ("transaction_type", "expected"),
        [
            (TransactionType.INCOME, Decimal("10.00")),
            (TransactionType.EXPENSE, Decimal("-10.00")),
            (TransactionType.TRANSFER, Decimal("-10.00")),
        ],
    )
    def test_signed_amount(self, transaction_type, expected):
        assert _transaction(transaction_type=transaction_type).signed_amount == expected

    def test_dedup_key(self):
        tx = _transaction()

        assert tx.dedup_key() == (tx.account_id, "tx-1")

    def test_soft_delete_is_idempotent(self):
        tx = _transaction()

        tx.soft_delete()
        deleted_at = tx.deleted_at
        tx.soft_delete()

        assert tx.is_deleted
        assert tx.deleted_at == deleted_at

    def test_equality_by_id(self):
        tx = _transaction()
        other = _transaction(id=tx.id, amount=Decimal("99"))

        assert tx == other
        assert hash(tx) == hash(other)
        assert tx != _transaction()

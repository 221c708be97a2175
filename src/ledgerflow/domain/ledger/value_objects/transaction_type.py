"""Ledger transaction type enumeration."""

from enum import Enum


class TransactionType(Enum):
    """Kind of money movement recorded in the ledger."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"

    def is_transfer(self) -> bool:
        return self == TransactionType.TRANSFER

"""Ledger domain: transactions owned by the user's books."""

from ledgerflow.domain.ledger.entities import LedgerTransaction
from ledgerflow.domain.ledger.repositories import LedgerTransactionRepository
from ledgerflow.domain.ledger.value_objects import TransactionType

__all__ = [
    "LedgerTransaction",
    "LedgerTransactionRepository",
    "TransactionType",
]

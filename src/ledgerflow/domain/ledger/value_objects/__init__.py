"""Ledger domain value objects."""

from ledgerflow.domain.ledger.value_objects.transaction_type import TransactionType

__all__ = [
    "TransactionType",
]

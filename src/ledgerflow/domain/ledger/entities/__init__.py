"""Ledger domain entities."""

from ledgerflow.domain.ledger.entities.ledger_transaction import LedgerTransaction

__all__ = [
    "LedgerTransaction",
]

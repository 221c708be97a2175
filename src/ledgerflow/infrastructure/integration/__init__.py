"""Integration adapters for external services."""

from ledgerflow.infrastructure.integration.provider import HttpTransactionProvider

__all__ = ["HttpTransactionProvider"]

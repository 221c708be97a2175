"""Bank-data provider integration."""

from ledgerflow.infrastructure.integration.provider.client import (
    HttpTransactionProvider,
)

__all__ = ["HttpTransactionProvider"]

"""Application services."""

from ledgerflow.application.services.batch_applier import BatchApplier
from ledgerflow.application.services.deduplication_index import (
    DeduplicationIndex,
    dedup_key,
)
from ledgerflow.application.services.import_orchestrator import ImportOrchestrator
from ledgerflow.application.services.import_settings import ImportSettings

__all__ = [
    "BatchApplier",
    "DeduplicationIndex",
    "ImportOrchestrator",
    "ImportSettings",
    "dedup_key",
]

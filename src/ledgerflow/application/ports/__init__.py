"""Application layer ports (aka interfaces)."""

from ledgerflow.application.ports.job_change_notifier import (
    JobChangeNotifier,
    NullJobChangeNotifier,
)
from ledgerflow.application.ports.job_scheduler import JobScheduler
from ledgerflow.application.ports.transaction_provider import (
    ProviderPage,
    TransactionProviderPort,
)

__all__ = [
    "JobChangeNotifier",
    "JobScheduler",
    "NullJobChangeNotifier",
    "ProviderPage",
    "TransactionProviderPort",
]

"""Background execution of import jobs."""

from ledgerflow.infrastructure.scheduling.asyncio_job_scheduler import (
    AsyncioJobScheduler,
)

__all__ = ["AsyncioJobScheduler"]

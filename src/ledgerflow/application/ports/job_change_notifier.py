"""Change notification port for import jobs.

Pushing job snapshots is optional. Subscribers must still work by polling
the job status query if nothing is ever published.
"""

from abc import ABC, abstractmethod

from ledgerflow.application.dtos.imports import ImportJobStatusDTO


class JobChangeNotifier(ABC):
    """Publishes job snapshots to interested subscribers."""

    @abstractmethod
    async def publish(self, snapshot: ImportJobStatusDTO) -> None:
        """Publish a snapshot of a job whose persisted state just changed."""


class NullJobChangeNotifier(JobChangeNotifier):
    """Notifier that drops every snapshot."""

    async def publish(self, snapshot: ImportJobStatusDTO) -> None:
        return None

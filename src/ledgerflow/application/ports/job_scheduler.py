"""Port for running import jobs out-of-band."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from ledgerflow.application.context import UserContext


class JobScheduler(ABC):
    """Runs a pending import job outside the request that created it."""

    @abstractmethod
    def schedule(self, job_id: UUID, user_context: UserContext) -> None:
        """
        Schedule a persisted, pending job for execution.

        Must return immediately. The job must already be committed, since
        the runner reads it back from storage.
        """

"""Repository interface for import jobs."""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from ledgerflow.domain.imports.entities import ImportJob
from ledgerflow.domain.imports.value_objects import JobStatus


class ImportJobRepository(ABC):
    """Repository interface for persisting and retrieving import jobs."""

    @abstractmethod
    async def save(self, job: ImportJob) -> None:
        """
        Insert or update an import job.

        A stored job that already reached a terminal state must never be
        overwritten.

        Parameters
        ----------
        job
            Import job to save

        Raises
        ------
        JobAlreadyFinishedError
            If the stored row is already completed or failed
        """

    @abstractmethod
    async def find_by_id(self, job_id: UUID) -> Optional[ImportJob]:
        """
        Find an import job by ID.

        Implementations must read the current persisted row, not a cached
        copy, so that pollers see fresh counters.

        Parameters
        ----------
        job_id
            Job ID to search for

        Returns
        -------
        Import job if found, None otherwise
        """

    @abstractmethod
    async def find_by_status(
        self,
        status: JobStatus,
        limit: Optional[int] = None,
    ) -> List[ImportJob]:
        """
        Find jobs in a given status, oldest first.

        Parameters
        ----------
        status
            Status to filter by
        limit
            Maximum number of jobs to return

        Returns
        -------
        List of matching import jobs
        """

    @abstractmethod
    async def find_recent(self, limit: int = 50) -> List[ImportJob]:
        """
        Find the most recently created jobs, newest first.

        Parameters
        ----------
        limit
            Maximum number of jobs to return

        Returns
        -------
        List of import jobs
        """

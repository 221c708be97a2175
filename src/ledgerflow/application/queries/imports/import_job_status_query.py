"""Import job status queries - read persisted job counters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

from ledgerflow.application.dtos.imports import ImportJobStatusDTO
from ledgerflow.domain.imports import ImportJobRepository, JobStatus
from ledgerflow.domain.imports.exceptions import JobNotFoundError

if TYPE_CHECKING:
    from ledgerflow.application.factories import RepositoryFactory


class GetImportJobQuery:
    """Query the current state of one import job.

    Reads only the persisted counters, so polling this never touches the
    write path.
    """

    def __init__(self, job_repository: ImportJobRepository):
        self._job_repo = job_repository

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> GetImportJobQuery:
        return cls(job_repository=factory.import_job_repository())

    async def execute(self, job_id: UUID) -> ImportJobStatusDTO:
        job = await self._job_repo.find_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return ImportJobStatusDTO.from_entity(job)


class ListImportJobsQuery:
    """Query recent import jobs of the current user."""

    def __init__(self, job_repository: ImportJobRepository):
        self._job_repo = job_repository

    @classmethod
    def from_factory(cls, factory: RepositoryFactory) -> ListImportJobsQuery:
        return cls(job_repository=factory.import_job_repository())

    async def execute(
        self,
        limit: int = 50,
        status: Optional[JobStatus] = None,
    ) -> list[ImportJobStatusDTO]:
        if status is not None:
            jobs = await self._job_repo.find_by_status(status, limit=limit)
        else:
            jobs = await self._job_repo.find_recent(limit=limit)
        return [ImportJobStatusDTO.from_entity(job) for job in jobs]

"""In-process job scheduler running import jobs as asyncio tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Set
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledgerflow.application.context import UserContext
from ledgerflow.application.ports import JobScheduler
from ledgerflow.domain.imports import JobStatus
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
    find_job_owners,
)

if TYPE_CHECKING:
    from ledgerflow.application.services import ImportOrchestrator

logger = logging.getLogger(__name__)

OrchestratorBuilder = Callable[[SQLAlchemyRepositoryFactory], "ImportOrchestrator"]

SHUTDOWN_REASON = "Import was interrupted by a server shutdown"
RESTART_REASON = "Import was interrupted by a server restart"


class AsyncioJobScheduler(JobScheduler):
    """
    Runs each scheduled job in a detached task with its own session.

    Jobs outlive the request that created them. A job whose task is lost
    before it starts stays ``pending`` and is picked up again by
    ``resume_pending_jobs``. A job cancelled mid-run is marked failed, and
    ``fail_interrupted_jobs`` does the same at startup for jobs a crashed
    process left in ``processing``.

    Assumes a single process runs background imports against the database.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        orchestrator_builder: OrchestratorBuilder,
    ):
        self._session_maker = session_maker
        self._build_orchestrator = orchestrator_builder
        # Store references to running tasks to prevent garbage collection
        self._tasks: Set[asyncio.Task] = set()

    @property
    def running_jobs(self) -> int:
        return len(self._tasks)

    def schedule(self, job_id: UUID, user_context: UserContext) -> None:
        logger.debug("Scheduling import job %s", job_id)
        task = asyncio.create_task(
            self._run(job_id, user_context),
            name=f"import-job-{job_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def resume_pending_jobs(self, limit: int = 5) -> int:
        """
        Schedule the oldest pending jobs of all users.

        Returns
        -------
        Number of jobs scheduled
        """
        async with self._session_maker() as session:
            owners = await find_job_owners(session, JobStatus.PENDING, limit)

        for job_id, user_id, household_id in owners:
            self.schedule(job_id, UserContext(user_id=user_id, household_id=household_id))

        if owners:
            logger.info("Resumed %d pending import job(s)", len(owners))
        return len(owners)

    async def fail_interrupted_jobs(self) -> int:
        """
        Mark jobs left in ``processing`` by a previous process as failed.

        Call before any job is scheduled in this process.

        Returns
        -------
        Number of jobs marked failed
        """
        async with self._session_maker() as session:
            owners = await find_job_owners(session, JobStatus.PROCESSING)

        for job_id, user_id, household_id in owners:
            await self._abandon(
                job_id,
                UserContext(user_id=user_id, household_id=household_id),
                RESTART_REASON,
            )

        if owners:
            logger.warning("Failed %d import job(s) interrupted by a restart", len(owners))
        return len(owners)

    async def wait_idle(self) -> None:
        """Wait until every scheduled job has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self, grace_seconds: float = 5.0) -> None:
        """Give running jobs a grace period, then cancel the rest.

        Cancelled jobs are marked failed before this returns.
        """
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=grace_seconds)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(
                "Cancelled %d import job(s) still running at shutdown",
                len(still_running),
            )
            await asyncio.gather(*still_running, return_exceptions=True)

    async def _run(self, job_id: UUID, user_context: UserContext) -> None:
        try:
            async with self._session_maker() as session:
                factory = SQLAlchemyRepositoryFactory(session, user_context)
                orchestrator = self._build_orchestrator(factory)
                await orchestrator.run_job(job_id)
        except asyncio.CancelledError:
            await asyncio.shield(self._abandon(job_id, user_context, SHUTDOWN_REASON))
            raise
        except Exception:
            logger.exception("Runner for import job %s crashed", job_id)

    async def _abandon(
        self,
        job_id: UUID,
        user_context: UserContext,
        reason: str,
    ) -> None:
        try:
            async with self._session_maker() as session:
                factory = SQLAlchemyRepositoryFactory(session, user_context)
                await self._build_orchestrator(factory).abandon_job(job_id, reason)
        except Exception:
            logger.exception("Could not mark import job %s as failed", job_id)

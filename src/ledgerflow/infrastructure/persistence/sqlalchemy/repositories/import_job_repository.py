"""SQLAlchemy implementation of ImportJobRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.domain.imports import ImportJob, ImportJobRepository, JobStatus
from ledgerflow.domain.imports.exceptions import JobAlreadyFinishedError
from ledgerflow.infrastructure.persistence.sqlalchemy.models import ImportJobModel

if TYPE_CHECKING:
    from ledgerflow.application.context import UserContext

_OPEN_STATUSES = (JobStatus.PENDING, JobStatus.PROCESSING)


class ImportJobRepositorySQLAlchemy(ImportJobRepository):
    """SQLAlchemy implementation of ImportJobRepository."""

    def __init__(self, session: AsyncSession, user_context: UserContext):
        self._session = session
        self._user_id = user_context.user_id

    async def save(self, job: ImportJob) -> None:
        stmt = select(ImportJobModel.status).where(
            ImportJobModel.user_id == self._user_id,
            ImportJobModel.id == job.id,
        )
        result = await self._session.execute(stmt)
        stored_status = result.scalar_one_or_none()

        if stored_status is None:
            self._session.add(self._domain_to_model(job))
            await self._session.flush()
            return

        if stored_status.is_final():
            raise JobAlreadyFinishedError(job.id, stored_status.value)

        # Guarded update: a concurrent writer may have finished the job since
        # the read above.
        update_stmt = (
            update(ImportJobModel)
            .where(
                ImportJobModel.id == job.id,
                ImportJobModel.status.in_(_OPEN_STATUSES),
            )
            .values(
                status=job.status,
                total_items=job.total_items,
                processed_items=job.processed_items,
                synced_items=job.synced_items,
                skipped_items=job.skipped_items,
                error_items=job.error_items,
                error_message=job.error_message,
                payload=job.payload,
                updated_at=job.updated_at,
                completed_at=job.completed_at,
            )
            .execution_options(synchronize_session=False)
        )
        update_result = await self._session.execute(update_stmt)
        if update_result.rowcount == 0:
            raise JobAlreadyFinishedError(job.id, "finished")

    async def find_by_id(self, job_id: UUID) -> Optional[ImportJob]:
        stmt = (
            select(ImportJobModel)
            .where(
                ImportJobModel.user_id == self._user_id,
                ImportJobModel.id == job_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        return self._model_to_domain(model)

    async def find_by_status(
        self,
        status: JobStatus,
        limit: Optional[int] = None,
    ) -> List[ImportJob]:
        stmt = (
            select(ImportJobModel)
            .where(
                ImportJobModel.user_id == self._user_id,
                ImportJobModel.status == status,
            )
            .order_by(ImportJobModel.created_at.asc())
            .execution_options(populate_existing=True)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._model_to_domain(model) for model in models]

    async def find_recent(self, limit: int = 50) -> List[ImportJob]:
        stmt = (
            select(ImportJobModel)
            .where(ImportJobModel.user_id == self._user_id)
            .order_by(ImportJobModel.created_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._model_to_domain(model) for model in models]

    @staticmethod
    def _domain_to_model(job: ImportJob) -> ImportJobModel:
        return ImportJobModel(
            id=job.id,
            user_id=job.user_id,
            account_id=job.account_id,
            job_type=job.type,
            status=job.status,
            total_items=job.total_items,
            processed_items=job.processed_items,
            synced_items=job.synced_items,
            skipped_items=job.skipped_items,
            error_items=job.error_items,
            error_message=job.error_message,
            payload=job.payload,
            created_at=job.created_at,
            updated_at=job.updated_at,
            completed_at=job.completed_at,
        )

    @staticmethod
    def _model_to_domain(model: ImportJobModel) -> ImportJob:
        return ImportJob.reconstitute(
            id=model.id,
            user_id=model.user_id,
            job_type=model.job_type,
            account_id=model.account_id,
            status=model.status,
            total_items=model.total_items,
            processed_items=model.processed_items,
            synced_items=model.synced_items,
            skipped_items=model.skipped_items,
            error_items=model.error_items,
            error_message=model.error_message,
            payload=model.payload,
            created_at=model.created_at,
            updated_at=model.updated_at,
            completed_at=model.completed_at,
        )


async def find_job_owners(
    session: AsyncSession,
    status: JobStatus,
    limit: Optional[int] = None,
) -> list[tuple[UUID, UUID, Optional[UUID]]]:
    """
    Return ``(job_id, user_id, household_id)`` of jobs in a status, oldest first.

    Looks across all users. Used at startup to pick up background jobs whose
    runner was lost. The household comes from the job payload.
    """
    stmt = (
        select(ImportJobModel.id, ImportJobModel.user_id, ImportJobModel.payload)
        .where(ImportJobModel.status == status)
        .order_by(ImportJobModel.created_at.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return [
        (row.id, row.user_id, _household_of(row.payload)) for row in result.all()
    ]


def _household_of(payload: Optional[dict]) -> Optional[UUID]:
    raw = (payload or {}).get("household_id")
    return UUID(raw) if raw else None

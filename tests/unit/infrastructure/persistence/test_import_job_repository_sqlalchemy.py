"""Tests for ImportJobRepositorySQLAlchemy."""

from datetime import timedelta
from uuid import uuid4

import pytest

from ledgerflow.domain.imports import ImportJob, JobStatus, JobType
from ledgerflow.domain.imports.exceptions import JobAlreadyFinishedError
from ledgerflow.domain.shared.time import utc_now
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories import (
    ImportJobRepositorySQLAlchemy,
    find_job_owners,
)
from tests.shared.fakes import (
    TEST_ACCOUNT_ID,
    TEST_HOUSEHOLD_ID,
    TEST_USER_ID,
    TEST_USER_ID_2,
)


def _job(user_id=TEST_USER_ID, minutes_ago=0, **kwargs) -> ImportJob:
    created = utc_now() - timedelta(minutes=minutes_ago)
    kwargs.setdefault("job_type", JobType.BULK_UPLOAD)
    return ImportJob(user_id=user_id, created_at=created, updated_at=created, **kwargs)


@pytest.fixture
def repo(async_session, user_context):
    return ImportJobRepositorySQLAlchemy(async_session, user_context)


class TestSave:
    @pytest.mark.asyncio
    async def test_insert_and_find(self, repo):
        job = _job(
            account_id=TEST_ACCOUNT_ID,
            total_items=3,
            payload={"records": [{"external_id": "tx-1"}], "household_id": None},
        )

        await repo.save(job)
        found = await repo.find_by_id(job.id)

        assert found == job
        assert found.type == JobType.BULK_UPLOAD
        assert found.status == JobStatus.PENDING
        assert found.account_id == TEST_ACCOUNT_ID
        assert found.total_items == 3
        assert found.payload == {
            "records": [{"external_id": "tx-1"}],
            "household_id": None,
        }

    @pytest.mark.asyncio
    async def test_update_persists_counters(self, repo):
        job = _job(total_items=10)
        await repo.save(job)

        job.mark_as_processing()
        job.record_batch(synced=6, skipped=3, errors=1)
        job.mark_as_completed()
        await repo.save(job)

        found = await repo.find_by_id(job.id)
        assert found.status == JobStatus.COMPLETED
        assert found.processed_items == 10
        assert found.synced_items == 6
        assert found.skipped_items == 3
        assert found.error_items == 1
        assert found.completed_at is not None

    @pytest.mark.asyncio
    async def test_finished_job_cannot_be_overwritten(self, repo):
        job = _job()
        await repo.save(job)
        job.mark_as_failed("Bank connection requires re-authentication")
        await repo.save(job)

        stale = await repo.find_by_id(job.id)
        stale_copy = ImportJob.reconstitute(
            id=stale.id,
            user_id=stale.user_id,
            job_type=stale.type,
            account_id=stale.account_id,
            status=JobStatus.PENDING,
            total_items=0,
            processed_items=0,
            synced_items=0,
            skipped_items=0,
            error_items=0,
            error_message=None,
            payload=stale.payload,
            created_at=stale.created_at,
            updated_at=stale.updated_at,
            completed_at=None,
        )

        with pytest.raises(JobAlreadyFinishedError):
            await repo.save(stale_copy)

        found = await repo.find_by_id(job.id)
        assert found.status == JobStatus.FAILED
        assert found.error_message == "Bank connection requires re-authentication"


class TestQueries:
    @pytest.mark.asyncio
    async def test_find_by_id_unknown(self, repo):
        assert await repo.find_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_find_by_status_oldest_first(self, repo):
        newer = _job(minutes_ago=1)
        older = _job(minutes_ago=5)
        done = _job(minutes_ago=3)
        done.mark_as_failed("boom")
        for job in (newer, older, done):
            await repo.save(job)

        pending = await repo.find_by_status(JobStatus.PENDING)

        assert [j.id for j in pending] == [older.id, newer.id]
        assert [j.id for j in await repo.find_by_status(JobStatus.PENDING, limit=1)] == [
            older.id,
        ]

    @pytest.mark.asyncio
    async def test_find_recent_newest_first(self, repo):
        jobs = [_job(minutes_ago=m) for m in (3, 1, 2)]
        for job in jobs:
            await repo.save(job)

        recent = await repo.find_recent(limit=2)

        assert [j.id for j in recent] == [jobs[1].id, jobs[2].id]

    @pytest.mark.asyncio
    async def test_jobs_are_scoped_to_user(
        self,
        async_session,
        repo,
        other_user_context,
    ):
        other_repo = ImportJobRepositorySQLAlchemy(async_session, other_user_context)
        foreign = _job(user_id=TEST_USER_ID_2)
        await other_repo.save(foreign)

        assert await repo.find_by_id(foreign.id) is None
        assert await repo.find_recent() == []
        assert await repo.find_by_status(JobStatus.PENDING) == []


class TestFindJobOwners:
    @pytest.mark.asyncio
    async def test_oldest_pending_jobs_of_all_users(
        self,
        async_session,
        repo,
        other_user_context,
    ):
        other_repo = ImportJobRepositorySQLAlchemy(async_session, other_user_context)

        mine = _job(minutes_ago=10, payload={"household_id": str(TEST_HOUSEHOLD_ID)})
        theirs = _job(user_id=TEST_USER_ID_2, minutes_ago=5)
        running = _job(minutes_ago=20)
        running.mark_as_processing()
        await repo.save(mine)
        await repo.save(running)
        await other_repo.save(theirs)
        await async_session.commit()

        owners = await find_job_owners(async_session, JobStatus.PENDING, limit=10)

        assert owners == [
            (mine.id, TEST_USER_ID, TEST_HOUSEHOLD_ID),
            (theirs.id, TEST_USER_ID_2, None),
        ]
        assert len(await find_job_owners(async_session, JobStatus.PENDING, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_processing_jobs_without_limit(self, async_session, repo):
        first = _job(minutes_ago=30)
        second = _job(minutes_ago=10)
        queued = _job()
        for job in (first, second):
            job.mark_as_processing()
        for job in (first, second, queued):
            await repo.save(job)
        await async_session.commit()

        owners = await find_job_owners(async_session, JobStatus.PROCESSING)

        assert [job_id for job_id, _, _ in owners] == [first.id, second.id]

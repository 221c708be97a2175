"""In-memory stand-ins for the import engine's repositories and ports.

They follow the repository contracts closely enough that the orchestrator
cannot tell them apart from the SQLAlchemy implementations: job snapshots
are copied on save and read, terminal jobs cannot be overwritten, and the
ledger ignores dedup-key conflicts on insert.
"""

import asyncio
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Union
from uuid import UUID

from ledgerflow.application.context import UserContext
from ledgerflow.application.dtos.imports import ImportJobStatusDTO
from ledgerflow.application.ports import (
    JobChangeNotifier,
    JobScheduler,
    ProviderPage,
    TransactionProviderPort,
)
from ledgerflow.domain.imports import (
    CandidateRecord,
    ImportJob,
    ImportJobRepository,
    JobStatus,
    SyncCursorRepository,
)
from ledgerflow.domain.imports.exceptions import (
    JobAlreadyFinishedError,
    RecordWriteError,
    StorageUnavailableError,
)
from ledgerflow.domain.ledger import LedgerTransaction, LedgerTransactionRepository

TEST_USER_ID = UUID("12345678-1234-5678-1234-567812345678")
TEST_USER_ID_2 = UUID("00000000-0000-0000-0000-000000000001")
TEST_HOUSEHOLD_ID = UUID("00000000-0000-0000-0000-0000000000aa")
TEST_ACCOUNT_ID = UUID("00000000-0000-0000-0000-000000000101")
TEST_ACCOUNT_ID_2 = UUID("00000000-0000-0000-0000-000000000102")


def make_candidate(
    external_id: Optional[str] = "tx-1",
    amount: Union[str, int, float, Decimal, None] = "12.50",
    booking_date: Union[date, str, None] = "2025-11-10",
    **kwargs,
) -> CandidateRecord:
    """Candidate record with sensible defaults."""
    kwargs.setdefault("description", f"Purchase {external_id}")
    return CandidateRecord(
        external_id=external_id,
        amount=amount,
        date=booking_date,
        **kwargs,
    )


def make_candidates(count: int, prefix: str = "tx", **kwargs) -> list[CandidateRecord]:
    return [make_candidate(f"{prefix}-{i}", **kwargs) for i in range(count)]


def copy_job(job: ImportJob) -> ImportJob:
    return ImportJob.reconstitute(
        id=job.id,
        user_id=job.user_id,
        job_type=job.type,
        account_id=job.account_id,
        status=job.status,
        total_items=job.total_items,
        processed_items=job.processed_items,
        synced_items=job.synced_items,
        skipped_items=job.skipped_items,
        error_items=job.error_items,
        error_message=job.error_message,
        payload=dict(job.payload),
        created_at=job.created_at,
        updated_at=job.updated_at,
        completed_at=job.completed_at,
    )


class InMemoryLedgerRepository(LedgerTransactionRepository):
    """Ledger keyed by ``(account_id, external_id)``.

    ``failing_external_ids`` makes any write touching those records fail
    with ``RecordWriteError``; ``unavailable`` makes every write fail with
    ``StorageUnavailableError``.
    """

    def __init__(self, failing_external_ids: Iterable[str] = ()):
        self.rows: dict[tuple[UUID, Optional[str]], LedgerTransaction] = {}
        self.failing_external_ids = set(failing_external_ids)
        self.unavailable = False
        self.lookups = 0
        self.batch_writes = 0
        self.single_writes = 0

    async def find_existing_external_ids(
        self,
        account_id: UUID,
        external_ids: Iterable[str],
    ) -> set[str]:
        self.lookups += 1
        wanted = set(external_ids)
        existing = {
            external_id
            for (acc, external_id) in self.rows
            if acc == account_id and external_id in wanted
        }
        # The answer may be stale by the time a concurrent import writes
        await asyncio.sleep(0)
        return existing

    async def add_batch(self, transactions: list[LedgerTransaction]) -> set[UUID]:
        self.batch_writes += 1
        self._check_writable(transactions)
        return self._insert(transactions)

    async def add(self, transaction: LedgerTransaction) -> bool:
        self.single_writes += 1
        self._check_writable([transaction])
        return transaction.id in self._insert([transaction])

    async def find_by_external_id(
        self,
        account_id: UUID,
        external_id: str,
    ) -> Optional[LedgerTransaction]:
        return self.rows.get((account_id, external_id))

    async def count_for_account(self, account_id: UUID) -> int:
        return sum(1 for (acc, _) in self.rows if acc == account_id)

    def transactions_for(self, account_id: UUID) -> list[LedgerTransaction]:
        return [tx for (acc, _), tx in self.rows.items() if acc == account_id]

    def _check_writable(self, transactions: list[LedgerTransaction]) -> None:
        if self.unavailable:
            raise StorageUnavailableError()
        if any(tx.external_id in self.failing_external_ids for tx in transactions):
            msg = "value too long for column"
            raise RecordWriteError(msg)

    def _insert(self, transactions: list[LedgerTransaction]) -> set[UUID]:
        inserted: set[UUID] = set()
        for tx in transactions:
            key = tx.dedup_key()
            if key in self.rows:
                continue
            self.rows[key] = tx
            inserted.add(tx.id)
        return inserted


class InMemoryJobRepository(ImportJobRepository):
    """Stores job snapshots; a finished job can never be saved again."""

    def __init__(self):
        self.jobs: dict[UUID, ImportJob] = {}
        self.saves: list[ImportJob] = []

    async def save(self, job: ImportJob) -> None:
        stored = self.jobs.get(job.id)
        if stored is not None and stored.is_finished():
            raise JobAlreadyFinishedError(job.id, stored.status.value)
        snapshot = copy_job(job)
        self.jobs[job.id] = snapshot
        self.saves.append(copy_job(job))

    async def find_by_id(self, job_id: UUID) -> Optional[ImportJob]:
        stored = self.jobs.get(job_id)
        return copy_job(stored) if stored else None

    async def find_by_status(
        self,
        status: JobStatus,
        limit: Optional[int] = None,
    ) -> List[ImportJob]:
        jobs = sorted(
            (j for j in self.jobs.values() if j.status == status),
            key=lambda j: j.created_at,
        )
        return [copy_job(j) for j in jobs[:limit]]

    async def find_recent(self, limit: int = 50) -> List[ImportJob]:
        jobs = sorted(self.jobs.values(), key=lambda j: j.created_at, reverse=True)
        return [copy_job(j) for j in jobs[:limit]]


class InMemoryCursorRepository(SyncCursorRepository):
    def __init__(self, cursors: Optional[dict[UUID, Optional[str]]] = None):
        self.cursors: dict[UUID, Optional[str]] = dict(cursors or {})
        self.saved: list[tuple[UUID, Optional[str]]] = []

    async def get_cursor(self, account_id: UUID) -> Optional[str]:
        return self.cursors.get(account_id)

    async def save_cursor(self, account_id: UUID, cursor: Optional[str]) -> None:
        self.cursors[account_id] = cursor
        self.saved.append((account_id, cursor))


class ScriptedProvider(TransactionProviderPort):
    """Answers each fetch with the next scripted page or exception."""

    def __init__(
        self,
        script: Optional[dict[UUID, list[Union[ProviderPage, Exception]]]] = None,
        estimates: Optional[dict[UUID, Optional[int]]] = None,
    ):
        self.script: dict[UUID, list] = defaultdict(list)
        for account_id, steps in (script or {}).items():
            self.script[account_id] = list(steps)
        self.estimates = estimates or {}
        self.calls: list[tuple[UUID, Optional[str]]] = []
        self.estimate_calls: list[UUID] = []

    async def fetch_transactions(
        self,
        account_id: UUID,
        cursor: Optional[str],
    ) -> ProviderPage:
        self.calls.append((account_id, cursor))
        steps = self.script[account_id]
        if not steps:
            return ProviderPage(records=[], next_cursor=cursor, has_more=False)
        step = steps.pop(0)
        if isinstance(step, Exception):
            raise step
        return step

    async def estimate_transaction_count(self, account_id: UUID) -> Optional[int]:
        self.estimate_calls.append(account_id)
        return self.estimates.get(account_id)


class RecordingScheduler(JobScheduler):
    def __init__(self):
        self.scheduled: list[tuple[UUID, UserContext]] = []

    def schedule(self, job_id: UUID, user_context: UserContext) -> None:
        self.scheduled.append((job_id, user_context))


class RecordingNotifier(JobChangeNotifier):
    def __init__(self):
        self.snapshots: list[ImportJobStatusDTO] = []

    async def publish(self, snapshot: ImportJobStatusDTO) -> None:
        self.snapshots.append(snapshot)


class RecordingSleep:
    """Async replacement for ``asyncio.sleep`` that only records delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

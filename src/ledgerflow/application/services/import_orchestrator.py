"""Import orchestrator: drives records from a source into the ledger.

The orchestrator picks between an inline run and a background job, walks
the records in bounded batches (dedup, map, apply), and is the only
component that changes job counters.

Inline runs (below the configured threshold) use a transient job that is
never persisted. They return their counts directly, re-raise fatal errors
to the caller, and can be cancelled between batches.

Background runs persist a ``pending`` job, hand it to a ``JobScheduler``
and return the job ID. The scheduled run moves the job to ``processing``
and then to ``completed`` or ``failed``. Counters are persisted every
``progress_interval`` records and at the end.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional
from uuid import UUID

from ledgerflow.application.dtos.imports import (
    ImportJobStatusDTO,
    ImportSource,
    ProviderSource,
    StartImportResult,
    SyncImportResult,
    UploadSource,
)
from ledgerflow.application.ports import (
    JobChangeNotifier,
    JobScheduler,
    NullJobChangeNotifier,
    ProviderPage,
    TransactionProviderPort,
)
from ledgerflow.application.services.batch_applier import BatchApplier
from ledgerflow.application.services.deduplication_index import DeduplicationIndex
from ledgerflow.application.services.import_settings import ImportSettings
from ledgerflow.domain.imports import (
    CandidateRecord,
    CategoryHintProvider,
    ImportJob,
    ImportJobRepository,
    JobStatus,
    JobType,
    RecordMapper,
    SyncCursorRepository,
)
from ledgerflow.domain.imports.exceptions import (
    JobAlreadyFinishedError,
    JobNotFoundError,
    MappingError,
    PaginationMutationError,
    ProviderError,
    ProviderRetriesExhaustedError,
    TransientProviderError,
)
from ledgerflow.domain.ledger import LedgerTransaction, LedgerTransactionRepository
from ledgerflow.domain.shared.exceptions import DomainException, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from ledgerflow.application.context import UserContext
    from ledgerflow.application.factories import RepositoryFactory

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], Awaitable[bool]]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class _RunState:
    """Mutable bookkeeping for one pass over a source."""

    background: bool
    should_cancel: Optional[CancelCheck] = None
    batches_done: int = 0
    since_persist: int = 0
    cancelled: bool = False


class ImportOrchestrator:
    """Decides how an import runs and drives it batch by batch."""

    def __init__(  # noqa: PLR0913
        self,
        job_repository: ImportJobRepository,
        ledger_repository: LedgerTransactionRepository,
        cursor_repository: SyncCursorRepository,
        user_context: UserContext,
        scheduler: Optional[JobScheduler] = None,
        provider: Optional[TransactionProviderPort] = None,
        notifier: Optional[JobChangeNotifier] = None,
        mapper: Optional[RecordMapper] = None,
        settings: Optional[ImportSettings] = None,
        db_session: Optional[AsyncSession] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._job_repo = job_repository
        self._ledger_repo = ledger_repository
        self._cursor_repo = cursor_repository
        self._user_context = user_context
        self._scheduler = scheduler
        self._provider = provider
        self._notifier = notifier or NullJobChangeNotifier()
        self._mapper = mapper or RecordMapper()
        self._settings = settings or ImportSettings()
        self._db_session = db_session
        self._sleep = sleep

        self._dedup = DeduplicationIndex(ledger_repository)
        self._applier = BatchApplier(ledger_repository, db_session=db_session)

    @classmethod
    def from_factory(  # noqa: PLR0913
        cls,
        factory: RepositoryFactory,
        scheduler: Optional[JobScheduler] = None,
        provider: Optional[TransactionProviderPort] = None,
        notifier: Optional[JobChangeNotifier] = None,
        settings: Optional[ImportSettings] = None,
        hint_provider: Optional[CategoryHintProvider] = None,
    ) -> ImportOrchestrator:
        return cls(
            job_repository=factory.import_job_repository(),
            ledger_repository=factory.ledger_transaction_repository(),
            cursor_repository=factory.sync_cursor_repository(),
            user_context=factory.user_context,
            scheduler=scheduler,
            provider=provider,
            notifier=notifier,
            mapper=RecordMapper(hint_provider),
            settings=settings,
            db_session=factory.session,
        )

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    async def start_import(
        self,
        source: ImportSource,
        force_async: bool = False,
        should_cancel: Optional[CancelCheck] = None,
    ) -> StartImportResult:
        """
        Start an import inline or as a background job.

        Parameters
        ----------
        source
            Records in hand (``UploadSource``) or accounts to pull from the
            provider (``ProviderSource``)
        force_async
            Always create a background job, whatever the volume
        should_cancel
            Async callback checked after every committed batch of an inline
            run; a truthy answer stops the run with a partial result

        Returns
        -------
        StartImportResult holding either the inline result or the job ID
        """
        self._validate_source(source)

        item_count = source.known_item_count
        needs_estimate = item_count is None and not force_async
        if needs_estimate and isinstance(source, ProviderSource):
            item_count = await self._estimate_provider_volume(source.account_ids)

        run_in_background = (
            force_async
            or item_count is None
            or item_count >= self._settings.sync_threshold
        )

        if run_in_background:
            job = await self._create_background_job(source)
            logger.info(
                "Import job %s created (%s, %s items)",
                job.id,
                job.type.value,
                item_count if item_count is not None else "unknown",
            )
            return StartImportResult.background(job.id)

        result = await self._run_inline(source, should_cancel)
        return StartImportResult.inline(result)

    async def run_job(self, job_id: UUID) -> ImportJob:
        """
        Execute a pending background job to a terminal state.

        Jobs that are not pending are returned untouched. Fatal errors end
        up in the job's ``error_message`` rather than being raised.

        Raises
        ------
        JobNotFoundError
            If no job with this ID exists for the current user
        """
        job = await self._job_repo.find_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        if not job.is_pending():
            logger.info(
                "Import job %s is %s, not running it again",
                job.id,
                job.status.value,
            )
            return job

        try:
            source = self._source_from_payload(job)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Import job %s has an unreadable payload: %s", job.id, e)
            job.mark_as_failed("Import job payload is unreadable")
            await self._finish_job(job)
            return job

        job.mark_as_processing()
        await self._job_repo.save(job)
        await self._commit()
        await self._publish(job)
        logger.info("Import job %s processing", job.id)

        try:
            await self._drive(job, source, _RunState(background=True))
            job.mark_as_completed()
        except DomainException as e:
            await self._rollback()
            logger.warning(
                "Import job %s failed: %s (code=%s)",
                job.id,
                e.message,
                e.code.value,
            )
            self._fail_in_memory(job, e.message)
        except Exception:
            await self._rollback()
            logger.exception("Import job %s failed unexpectedly", job.id)
            self._fail_in_memory(job, "Import failed unexpectedly")

        await self._finish_job(job)
        logger.info(
            "Import job %s %s: %d synced, %d skipped, %d errors",
            job.id,
            job.status.value,
            job.synced_items,
            job.skipped_items,
            job.error_items,
        )
        return job

    async def abandon_job(self, job_id: UUID, reason: str) -> Optional[ImportJob]:
        """
        Fail a job whose run was cut short (shutdown, crash).

        Only ``processing`` jobs change. A pending job has not started and
        stays queued for the next resume; a finished job is final.
        """
        job = await self._job_repo.find_by_id(job_id)
        if job is None or job.status != JobStatus.PROCESSING:
            return job

        job.mark_as_failed(reason)
        await self._finish_job(job)
        logger.warning(
            "Import job %s marked failed after %d of %d items: %s",
            job.id,
            job.processed_items,
            job.total_items,
            reason,
        )
        return job

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    def _validate_source(self, source: ImportSource) -> None:
        if isinstance(source, ProviderSource):
            if not source.account_ids:
                msg = "A provider sync needs at least one account"
                raise ValidationError(msg)
            if self._provider is None:
                msg = "No transaction provider is configured"
                raise ValidationError(msg)

    async def _estimate_provider_volume(self, account_ids: list[UUID]) -> Optional[int]:
        assert self._provider is not None
        total = 0
        for account_id in account_ids:
            estimate = await self._provider.estimate_transaction_count(account_id)
            if estimate is None:
                return None
            total += estimate
        return total

    async def _create_background_job(self, source: ImportSource) -> ImportJob:
        if self._scheduler is None:
            msg = "Background imports need a job scheduler"
            raise ValidationError(msg)

        job = ImportJob(
            user_id=self._user_context.user_id,
            job_type=source.job_type,
            account_id=source.account_id,
            payload=self._payload_for(source),
        )
        if isinstance(source, UploadSource):
            job.expand_total(len(source.records))

        await self._job_repo.save(job)
        await self._commit()
        await self._publish(job)

        self._scheduler.schedule(job.id, self._user_context)
        return job

    async def _run_inline(
        self,
        source: ImportSource,
        should_cancel: Optional[CancelCheck],
    ) -> SyncImportResult:
        job = ImportJob(
            user_id=self._user_context.user_id,
            job_type=source.job_type,
            account_id=source.account_id,
        )
        job.mark_as_processing()
        if isinstance(source, UploadSource):
            job.expand_total(len(source.records))

        state = _RunState(background=False, should_cancel=should_cancel)
        try:
            await self._drive(job, source, state)
        except Exception:
            await self._rollback()
            raise

        if not state.cancelled:
            job.mark_as_completed()
        else:
            logger.info(
                "Inline import cancelled after %d of %d items",
                job.processed_items,
                job.total_items,
            )

        return SyncImportResult(
            total_items=job.total_items,
            processed_items=job.processed_items,
            synced_items=job.synced_items,
            skipped_items=job.skipped_items,
            error_items=job.error_items,
            cancelled=state.cancelled,
        )

    # -------------------------------------------------------------------------
    # Batch loop
    # -------------------------------------------------------------------------

    async def _drive(self, job: ImportJob, source: ImportSource, state: _RunState) -> None:
        if isinstance(source, UploadSource):
            await self._drive_records(job, source.records, source.account_id, state)
        else:
            for account_id in source.account_ids:
                await self._sync_account(job, account_id, state)
                if state.cancelled:
                    break

    async def _sync_account(
        self,
        job: ImportJob,
        account_id: UUID,
        state: _RunState,
    ) -> None:
        records, next_cursor = await self._fetch_all(account_id)
        logger.info(
            "Fetched %d records from provider for account %s",
            len(records),
            account_id,
        )
        job.expand_total(len(records))

        await self._drive_records(job, records, account_id, state)
        if state.cancelled:
            # Cursor stays put so the next sync fetches these records again.
            return

        await self._cursor_repo.save_cursor(account_id, next_cursor)
        await self._commit()

    async def _drive_records(
        self,
        job: ImportJob,
        records: list[CandidateRecord],
        account_id: Optional[UUID],
        state: _RunState,
    ) -> None:
        batch_size = self._settings.batch_size
        for start in range(0, len(records), batch_size):
            if state.background and state.batches_done and self._settings.batch_delay_ms:
                await self._sleep(self._settings.batch_delay_seconds)

            chunk = records[start : start + batch_size]
            await self._process_chunk(job, chunk, account_id)
            state.batches_done += 1
            state.since_persist += len(chunk)

            if state.background and state.since_persist >= self._settings.progress_interval:
                await self._job_repo.save(job)
                await self._commit()
                await self._publish(job)
                state.since_persist = 0
            else:
                await self._commit()

            logger.debug(
                "Batch %d done: %d/%d processed",
                state.batches_done,
                job.processed_items,
                job.total_items,
            )

            if state.should_cancel is not None and await state.should_cancel():
                state.cancelled = True
                return

    async def _process_chunk(
        self,
        job: ImportJob,
        chunk: list[CandidateRecord],
        account_id: Optional[UUID],
    ) -> None:
        if account_id is not None:
            groups = {account_id: chunk}
            unroutable = 0
        else:
            groups, unroutable = self._group_by_account(chunk)

        synced = skipped = errors = 0
        errors += unroutable
        for group_account_id, candidates in groups.items():
            new_candidates, duplicates = await self._dedup.filter_new(
                candidates,
                group_account_id,
            )
            skipped += duplicates

            mapped, mapping_errors = self._map_all(new_candidates, group_account_id)
            errors += mapping_errors

            result = await self._applier.apply(mapped)
            # Commit per account group: a fallback rollback in the next
            # group must not discard rows already counted as synced.
            await self._commit()
            synced += result.applied
            skipped += result.duplicate_conflicts
            errors += result.failed

        job.record_batch(synced=synced, skipped=skipped, errors=errors)

    def _map_all(
        self,
        candidates: list[CandidateRecord],
        account_id: UUID,
    ) -> tuple[list[LedgerTransaction], int]:
        mapped: list[LedgerTransaction] = []
        failures = 0
        for candidate in candidates:
            try:
                mapped.append(
                    self._mapper.map(
                        candidate,
                        account_id=account_id,
                        user_id=self._user_context.user_id,
                        context_id=self._user_context.context_id,
                    ),
                )
            except MappingError as e:
                failures += 1
                logger.debug("Skipping unmappable record: %s", e.message)
        return mapped, failures

    @staticmethod
    def _group_by_account(
        chunk: list[CandidateRecord],
    ) -> tuple[dict[UUID, list[CandidateRecord]], int]:
        groups: dict[UUID, list[CandidateRecord]] = {}
        unroutable = 0
        for candidate in chunk:
            try:
                target = UUID(str(candidate.account_ref).strip())
            except ValueError:
                unroutable += 1
                logger.debug(
                    "Record %s has no usable account reference",
                    candidate.external_id,
                )
                continue
            groups.setdefault(target, []).append(candidate)
        return groups, unroutable

    # -------------------------------------------------------------------------
    # Provider access
    # -------------------------------------------------------------------------

    async def _fetch_all(
        self,
        account_id: UUID,
    ) -> tuple[list[CandidateRecord], Optional[str]]:
        """Page through the provider feed from the stored cursor.

        If the provider reports that data changed mid-pagination, every page
        fetched so far is discarded and paging restarts from the stored
        cursor.
        """
        assert self._provider is not None
        start_cursor = await self._cursor_repo.get_cursor(account_id)
        restarts = 0

        while True:
            records: list[CandidateRecord] = []
            cursor = start_cursor
            try:
                while True:
                    page = await self._fetch_page(account_id, cursor)
                    records.extend(page.records)
                    if page.next_cursor is not None:
                        cursor = page.next_cursor
                    if not page.has_more:
                        return records, cursor
            except PaginationMutationError as e:
                restarts += 1
                if restarts > self._settings.provider_max_pagination_restarts:
                    raise ProviderRetriesExhaustedError(restarts, e) from e
                logger.warning(
                    "Provider data changed while paging account %s, "
                    "restarting from stored cursor (%d/%d)",
                    account_id,
                    restarts,
                    self._settings.provider_max_pagination_restarts,
                )

    async def _fetch_page(self, account_id: UUID, cursor: Optional[str]) -> ProviderPage:
        assert self._provider is not None
        attempt = 0
        while True:
            try:
                return await self._provider.fetch_transactions(account_id, cursor)
            except PaginationMutationError:
                raise
            except TransientProviderError as e:
                attempt += 1
                if attempt > self._settings.provider_max_retries:
                    raise ProviderRetriesExhaustedError(attempt, e) from e
                delay = self._retry_delay(e, attempt)
                logger.warning(
                    "Transient provider error for account %s (%s), "
                    "retry %d/%d in %.1fs",
                    account_id,
                    e.code.value,
                    attempt,
                    self._settings.provider_max_retries,
                    delay,
                )
                await self._sleep(delay)

    def _retry_delay(self, error: ProviderError, attempt: int) -> float:
        retry_after = getattr(error, "retry_after_seconds", None)
        if retry_after is not None:
            return float(retry_after)
        return self._settings.provider_retry_base_delay_seconds * 2 ** (attempt - 1)

    # -------------------------------------------------------------------------
    # Job persistence helpers
    # -------------------------------------------------------------------------

    def _payload_for(self, source: ImportSource) -> dict:
        household_id = self._user_context.household_id
        payload: dict = {"household_id": str(household_id) if household_id else None}
        if isinstance(source, UploadSource):
            payload["records"] = [r.to_dict() for r in source.records]
        else:
            payload["account_ids"] = [str(a) for a in source.account_ids]
        return payload

    @staticmethod
    def _source_from_payload(job: ImportJob) -> ImportSource:
        payload = job.payload
        if job.type == JobType.BULK_UPLOAD:
            records = [CandidateRecord.from_dict(r) for r in payload["records"]]
            return UploadSource(records=records, account_id=job.account_id)
        account_ids = [UUID(a) for a in payload["account_ids"]]
        return ProviderSource(account_ids=account_ids)

    @staticmethod
    def _fail_in_memory(job: ImportJob, message: str) -> None:
        if job.is_finished():
            return
        job.mark_as_failed(message)

    async def _finish_job(self, job: ImportJob) -> None:
        try:
            await self._job_repo.save(job)
            await self._commit()
        except JobAlreadyFinishedError:
            await self._rollback()
            logger.warning("Import job %s was already finished in storage", job.id)
            return
        await self._publish(job)

    async def _publish(self, job: ImportJob) -> None:
        try:
            await self._notifier.publish(ImportJobStatusDTO.from_entity(job))
        except Exception as e:
            logger.warning("Could not publish progress of job %s: %s", job.id, e)

    async def _commit(self) -> None:
        if self._db_session is not None:
            await self._db_session.commit()

    async def _rollback(self) -> None:
        if self._db_session is not None:
            await self._db_session.rollback()

"""Import job entity tracking progress of one import run."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from ledgerflow.domain.imports.exceptions import (
    CounterInvariantError,
    InvalidJobTransitionError,
    JobAlreadyFinishedError,
)
from ledgerflow.domain.imports.value_objects import JobStatus, JobType
from ledgerflow.domain.shared.time import utc_now


class ImportJob:
    """
    Unit of work for importing records into the ledger.

    The job exclusively owns its counters. After every recorded batch:

    - ``processed_items == synced_items + skipped_items + error_items``
    - ``processed_items <= total_items``

    Counters only ever grow. Once the job is ``completed`` or ``failed``
    every mutating method raises ``JobAlreadyFinishedError``.

    ``account_id`` is None for jobs that span several accounts. ``payload``
    holds whatever a background run needs to execute on its own (the
    uploaded records, or the accounts to sync).
    """

    def __init__(  # noqa: PLR0913
        self,
        user_id: UUID,
        job_type: JobType,
        account_id: Optional[UUID] = None,
        status: JobStatus = JobStatus.PENDING,
        total_items: int = 0,
        processed_items: int = 0,
        synced_items: int = 0,
        skipped_items: int = 0,
        error_items: int = 0,
        error_message: Optional[str] = None,
        payload: Optional[dict[str, Any]] = None,
        # For reconstitution from persistence:
        id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        completed_at: Optional[datetime] = None,
    ):
        self._id = id or uuid4()
        self._user_id = user_id
        self._type = job_type
        self._account_id = account_id
        self._status = status
        self._total_items = total_items
        self._processed_items = processed_items
        self._synced_items = synced_items
        self._skipped_items = skipped_items
        self._error_items = error_items
        self._error_message = error_message
        self._payload = payload or {}
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or utc_now()
        self._completed_at = completed_at

        self._validate()

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def user_id(self) -> UUID:
        return self._user_id

    @property
    def type(self) -> JobType:
        return self._type

    @property
    def account_id(self) -> Optional[UUID]:
        return self._account_id

    @property
    def status(self) -> JobStatus:
        return self._status

    @property
    def total_items(self) -> int:
        return self._total_items

    @property
    def processed_items(self) -> int:
        return self._processed_items

    @property
    def synced_items(self) -> int:
        return self._synced_items

    @property
    def skipped_items(self) -> int:
        return self._skipped_items

    @property
    def error_items(self) -> int:
        return self._error_items

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def payload(self) -> dict[str, Any]:
        return self._payload

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def completed_at(self) -> Optional[datetime]:
        return self._completed_at

    @property
    def progress(self) -> int:
        """Percentage of processed items, 0 while the total is unknown."""
        if self._total_items <= 0:
            return 0
        pct = int(self._processed_items * 100 / self._total_items)
        return max(0, min(100, pct))

    @property
    def is_multi_account(self) -> bool:
        return self._account_id is None

    def _validate(self) -> None:
        counters = (
            self._total_items,
            self._processed_items,
            self._synced_items,
            self._skipped_items,
            self._error_items,
        )
        if any(c < 0 for c in counters):
            msg = "Job counters cannot be negative"
            raise CounterInvariantError(msg, details={"job_id": str(self._id)})

        self._check_conservation()

        if self._status == JobStatus.FAILED and not self._error_message:
            msg = "Failed job must have an error message"
            raise CounterInvariantError(msg, details={"job_id": str(self._id)})

    def _check_conservation(self) -> None:
        outcome_sum = self._synced_items + self._skipped_items + self._error_items
        if self._processed_items != outcome_sum:
            msg = "Processed items must equal synced + skipped + error items"
            raise CounterInvariantError(
                msg,
                details={
                    "job_id": str(self._id),
                    "processed": self._processed_items,
                    "outcomes": outcome_sum,
                },
            )
        if self._processed_items > self._total_items:
            msg = "Processed items cannot exceed total items"
            raise CounterInvariantError(
                msg,
                details={
                    "job_id": str(self._id),
                    "processed": self._processed_items,
                    "total": self._total_items,
                },
            )

    def _ensure_not_finished(self) -> None:
        if self._status.is_final():
            raise JobAlreadyFinishedError(self._id, self._status.value)

    def _transition(self, target: JobStatus) -> None:
        self._ensure_not_finished()
        if not self._status.can_transition_to(target):
            raise InvalidJobTransitionError(
                self._id,
                self._status.value,
                target.value,
            )
        self._status = target
        self._updated_at = utc_now()

    def mark_as_processing(self) -> None:
        self._transition(JobStatus.PROCESSING)

    def expand_total(self, count: int) -> None:
        """Grow the total once another chunk of records has been sized."""
        self._ensure_not_finished()
        if count < 0:
            msg = "Cannot shrink the total of an import job"
            raise CounterInvariantError(msg, details={"job_id": str(self._id)})
        self._total_items += count
        self._updated_at = utc_now()

    def record_batch(
        self,
        synced: int = 0,
        skipped: int = 0,
        errors: int = 0,
    ) -> None:
        """Add the outcome of one committed batch to the counters."""
        self._ensure_not_finished()
        if self._status != JobStatus.PROCESSING:
            raise InvalidJobTransitionError(
                self._id,
                self._status.value,
                "record_batch",
            )
        if synced < 0 or skipped < 0 or errors < 0:
            msg = "Batch outcome counts cannot be negative"
            raise CounterInvariantError(msg, details={"job_id": str(self._id)})

        processed = synced + skipped + errors
        if self._processed_items + processed > self._total_items:
            msg = "Batch would push processed items past the total"
            raise CounterInvariantError(
                msg,
                details={
                    "job_id": str(self._id),
                    "processed": self._processed_items + processed,
                    "total": self._total_items,
                },
            )

        self._synced_items += synced
        self._skipped_items += skipped
        self._error_items += errors
        self._processed_items += processed
        self._updated_at = utc_now()

    def mark_as_completed(self) -> None:
        if self._processed_items != self._total_items:
            msg = "Job cannot complete before every item is processed"
            raise CounterInvariantError(
                msg,
                details={
                    "job_id": str(self._id),
                    "processed": self._processed_items,
                    "total": self._total_items,
                },
            )
        self._transition(JobStatus.COMPLETED)
        self._completed_at = self._updated_at

    def mark_as_failed(self, error_message: str) -> None:
        if not error_message or not error_message.strip():
            msg = "Error message cannot be empty"
            raise ValueError(msg)

        self._transition(JobStatus.FAILED)
        self._error_message = error_message.strip()
        self._completed_at = self._updated_at

    def is_finished(self) -> bool:
        return self._status.is_final()

    def is_pending(self) -> bool:
        return self._status == JobStatus.PENDING

    @classmethod
    def reconstitute(  # noqa: PLR0913
        cls,
        id: UUID,
        user_id: UUID,
        job_type: JobType,
        account_id: Optional[UUID],
        status: JobStatus,
        total_items: int,
        processed_items: int,
        synced_items: int,
        skipped_items: int,
        error_items: int,
        error_message: Optional[str],
        payload: Optional[dict[str, Any]],
        created_at: datetime,
        updated_at: datetime,
        completed_at: Optional[datetime],
    ) -> "ImportJob":
        return cls(
            user_id=user_id,
            job_type=job_type,
            account_id=account_id,
            status=status,
            total_items=total_items,
            processed_items=processed_items,
            synced_items=synced_items,
            skipped_items=skipped_items,
            error_items=error_items,
            error_message=error_message,
            payload=payload,
            id=id,
            created_at=created_at,
            updated_at=updated_at,
            completed_at=completed_at,
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, ImportJob):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return (
            f"ImportJob[{self._type.value}/{self._status.value}]: "
            f"{self._processed_items}/{self._total_items}"
        )

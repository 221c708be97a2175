"""Import domain exceptions.

Exceptions raised while pulling records from a provider or upload and
writing them to the ledger. They fall into four groups that drive how the
orchestrator reacts:

- per-record errors (``MappingError``, ``RecordWriteError``): counted, the
  import continues
- transient provider errors (``TransientProviderError``): retried with
  bounded backoff
- fatal errors (``FatalProviderError``, ``StorageUnavailableError``, job
  invariant violations): the import stops and a background job is failed
- lookup/state errors for the job itself
"""

from typing import Any, Optional
from uuid import UUID

from ledgerflow.domain.shared.exceptions import (
    BusinessRuleViolation,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)


class ImportDomainError(DomainException):
    """Base exception for import domain errors."""


# =============================================================================
# Per-record errors
# =============================================================================


class MappingError(ValidationError):
    """Raised when a candidate record cannot be mapped to a ledger transaction."""

    def __init__(
        self,
        reason: str,
        external_id: Optional[str] = None,
        code: ErrorCode = ErrorCode.INVALID_RECORD,
    ) -> None:
        super().__init__(
            message=f"Cannot map record {external_id or '<missing id>'}: {reason}",
            code=code,
            details={"external_id": external_id, "reason": reason},
        )
        self.reason = reason
        self.external_id = external_id


class RecordWriteError(ImportDomainError):
    """Raised when storage rejects a write for a reason other than a duplicate."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.RECORD_WRITE_FAILED,
            details=details,
        )


# =============================================================================
# Fatal errors
# =============================================================================


class StorageUnavailableError(ImportDomainError):
    """Raised when the ledger store cannot be reached at all."""

    def __init__(self, message: str = "Ledger storage is unavailable") -> None:
        super().__init__(message=message, code=ErrorCode.STORAGE_UNAVAILABLE)


# =============================================================================
# Provider errors
# =============================================================================


class ProviderError(ImportDomainError):
    """Base exception for errors reported by the transaction provider."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details)


class TransientProviderError(ProviderError):
    """Provider failure that is expected to clear up on retry."""

    retry_after_seconds: Optional[float] = None


class ProviderRateLimitedError(TransientProviderError):
    """Raised when the provider throttles our requests."""

    def __init__(self, retry_after_seconds: Optional[float] = None) -> None:
        super().__init__(
            message="Transaction provider rate limit reached",
            code=ErrorCode.PROVIDER_RATE_LIMITED,
            details={"retry_after_seconds": retry_after_seconds},
        )
        self.retry_after_seconds = retry_after_seconds


class InstitutionUnavailableError(TransientProviderError):
    """Raised when the user's bank is temporarily unreachable via the provider."""

    def __init__(self, institution: Optional[str] = None) -> None:
        msg = "Financial institution is temporarily unavailable"
        if institution:
            msg = f"{msg}: {institution}"
        super().__init__(
            message=msg,
            code=ErrorCode.INSTITUTION_UNAVAILABLE,
            details={"institution": institution},
        )


class PaginationMutationError(TransientProviderError):
    """Raised when provider data changed while paging through a cursor.

    Pagination has to restart from the cursor the sync started with.
    """

    def __init__(self, account_id: Optional[UUID] = None) -> None:
        super().__init__(
            message="Provider data changed during pagination",
            code=ErrorCode.PROVIDER_PAGINATION_MUTATED,
            details={"account_id": str(account_id) if account_id else None},
        )


class FatalProviderError(ProviderError):
    """Provider failure that retrying cannot fix."""


class ProviderReauthRequiredError(FatalProviderError):
    """Raised when the user must re-authenticate with their institution."""

    def __init__(self, account_id: Optional[UUID] = None) -> None:
        super().__init__(
            message="Bank connection requires re-authentication",
            code=ErrorCode.PROVIDER_REAUTH_REQUIRED,
            details={"account_id": str(account_id) if account_id else None},
        )


class ProviderRetriesExhaustedError(FatalProviderError):
    """Raised when a transient provider error persisted through every retry."""

    def __init__(self, attempts: int, last_error: ProviderError) -> None:
        super().__init__(
            message=(
                f"Transaction provider still failing after {attempts} attempts: "
                f"{last_error.message}"
            ),
            code=ErrorCode.PROVIDER_RETRIES_EXHAUSTED,
            details={"attempts": attempts, "last_code": last_error.code.value},
        )
        self.attempts = attempts
        self.last_error = last_error


# =============================================================================
# Job errors
# =============================================================================


class JobNotFoundError(EntityNotFoundError):
    """Raised when an import job cannot be found."""

    def __init__(self, job_id: UUID) -> None:
        super().__init__(
            message=f"Import job not found: {job_id}",
            code=ErrorCode.IMPORT_JOB_NOT_FOUND,
            details={"job_id": str(job_id)},
        )


class JobAlreadyFinishedError(BusinessRuleViolation):
    """Raised when something tries to change a completed or failed job."""

    def __init__(self, job_id: UUID, status: str) -> None:
        super().__init__(
            message=f"Import job {job_id} is already {status}",
            code=ErrorCode.JOB_ALREADY_FINISHED,
            details={"job_id": str(job_id), "status": status},
        )


class InvalidJobTransitionError(BusinessRuleViolation):
    """Raised for a status change the job state machine does not allow."""

    def __init__(self, job_id: UUID, current: str, target: str) -> None:
        super().__init__(
            message=f"Import job {job_id} cannot move from {current} to {target}",
            code=ErrorCode.INVALID_JOB_TRANSITION,
            details={"job_id": str(job_id), "current": current, "target": target},
        )


class CounterInvariantError(BusinessRuleViolation):
    """Raised when job counters would become inconsistent."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.COUNTER_INVARIANT_VIOLATED,
            details=details,
        )


class UploadParseError(ValidationError):
    """Raised when an uploaded file cannot be read as a whole."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code=ErrorCode.INVALID_UPLOAD)


# Errors that end an import immediately.
FATAL_IMPORT_ERRORS: tuple[type[DomainException], ...] = (
    FatalProviderError,
    StorageUnavailableError,
    CounterInvariantError,
    InvalidJobTransitionError,
    JobAlreadyFinishedError,
)

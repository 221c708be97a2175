"""Import job status enumeration."""

from enum import Enum


class JobStatus(Enum):
    """Lifecycle state of an import job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_final(self) -> bool:
        return self in [
            JobStatus.COMPLETED,
            JobStatus.FAILED,
        ]

    def is_error(self) -> bool:
        return self == JobStatus.FAILED

    def can_transition_to(self, target: "JobStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

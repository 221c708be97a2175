"""Import domain value objects."""

from ledgerflow.domain.imports.value_objects.batch_result import (
    BatchResult,
    RecordOutcome,
)
from ledgerflow.domain.imports.value_objects.candidate_record import CandidateRecord
from ledgerflow.domain.imports.value_objects.category_suggestion import (
    CategorySuggestion,
)
from ledgerflow.domain.imports.value_objects.job_status import JobStatus
from ledgerflow.domain.imports.value_objects.job_type import JobType

__all__ = [
    "BatchResult",
    "CandidateRecord",
    "CategorySuggestion",
    "JobStatus",
    "JobType",
    "RecordOutcome",
]

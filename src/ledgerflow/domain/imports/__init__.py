"""Import domain: jobs, candidate records and their mapping to the ledger."""

from ledgerflow.domain.imports.entities import ImportJob
from ledgerflow.domain.imports.repositories import (
    ImportJobRepository,
    SyncCursorRepository,
)
from ledgerflow.domain.imports.services import (
    CandidateHintProvider,
    CategoryHintProvider,
    ChainedCategoryHintProvider,
    KeywordCategoryHintProvider,
    KeywordRule,
    RecordMapper,
)
from ledgerflow.domain.imports.value_objects import (
    BatchResult,
    CandidateRecord,
    CategorySuggestion,
    JobStatus,
    JobType,
    RecordOutcome,
)

__all__ = [
    # Entities
    "ImportJob",
    # Repositories
    "ImportJobRepository",
    "SyncCursorRepository",
    # Services & Interfaces
    "CandidateHintProvider",
    "CategoryHintProvider",
    "ChainedCategoryHintProvider",
    "KeywordCategoryHintProvider",
    "KeywordRule",
    "RecordMapper",
    # Value Objects
    "BatchResult",
    "CandidateRecord",
    "CategorySuggestion",
    "JobStatus",
    "JobType",
    "RecordOutcome",
]

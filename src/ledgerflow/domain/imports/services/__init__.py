"""Import domain services."""

from ledgerflow.domain.imports.services.category_hints import (
    CandidateHintProvider,
    CategoryHintProvider,
    ChainedCategoryHintProvider,
    KeywordCategoryHintProvider,
    KeywordRule,
)
from ledgerflow.domain.imports.services.record_mapper import RecordMapper

__all__ = [
    "CandidateHintProvider",
    "CategoryHintProvider",
    "ChainedCategoryHintProvider",
    "KeywordCategoryHintProvider",
    "KeywordRule",
    "RecordMapper",
]

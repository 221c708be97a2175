"""Category hint providers used by the record mapper.

Category hints are suggestions only. Nothing in the import pipeline relies
on them for correctness, so any provider can be swapped in without
touching deduplication or job bookkeeping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ledgerflow.domain.imports.value_objects import CandidateRecord, CategorySuggestion


class CategoryHintProvider(ABC):
    """Abstract interface for suggesting a category for a candidate record."""

    @abstractmethod
    def suggest(self, candidate: CandidateRecord) -> CategorySuggestion:
        """
        Suggest a category for a candidate record.

        Implementations must be pure and must not raise for odd input;
        return ``CategorySuggestion.none()`` when there is nothing to say.

        Parameters
        ----------
        candidate
            The record being mapped

        Returns
        -------
        CategorySuggestion, possibly empty
        """


class CandidateHintProvider(CategoryHintProvider):
    """Passes through the category IDs that came with the record."""

    def suggest(self, candidate: CandidateRecord) -> CategorySuggestion:
        if candidate.category_id is None and candidate.subcategory_id is None:
            return CategorySuggestion.none()
        return CategorySuggestion(
            category_id=candidate.category_id,
            subcategory_id=candidate.subcategory_id,
            source="candidate",
        )


@dataclass(frozen=True)
class KeywordRule:
    """Maps a keyword found in description or merchant to a category."""

    keyword: str
    category_id: str
    subcategory_id: Optional[str] = None

    def matches(self, text: str) -> bool:
        return self.keyword.lower() in text.lower()


class KeywordCategoryHintProvider(CategoryHintProvider):
    """Free-text heuristic: first rule whose keyword appears wins."""

    def __init__(self, rules: Iterable[KeywordRule]):
        self._rules: tuple[KeywordRule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[KeywordRule, ...]:
        return self._rules

    def suggest(self, candidate: CandidateRecord) -> CategorySuggestion:
        haystack = " ".join(
            part
            for part in (candidate.merchant_name, candidate.description)
            if part
        )
        if not haystack:
            return CategorySuggestion.none()
        for rule in self._rules:
            if rule.matches(haystack):
                return CategorySuggestion(
                    category_id=rule.category_id,
                    subcategory_id=rule.subcategory_id,
                    source="keyword",
                )
        return CategorySuggestion.none()


class ChainedCategoryHintProvider(CategoryHintProvider):
    """Asks each provider in order and keeps the first non-empty answer."""

    def __init__(self, providers: Sequence[CategoryHintProvider]):
        self._providers = tuple(providers)

    def suggest(self, candidate: CandidateRecord) -> CategorySuggestion:
        for provider in self._providers:
            suggestion = provider.suggest(candidate)
            if not suggestion.is_empty:
                return suggestion
        return CategorySuggestion.none()

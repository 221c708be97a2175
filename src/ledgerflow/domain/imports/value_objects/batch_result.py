"""Outcome of applying one batch of mapped records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class RecordOutcome(Enum):
    """What happened to a single record when its batch was written."""

    APPLIED = "applied"
    DUPLICATE_CONFLICT = "duplicate_conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class BatchResult:
    """Per-record outcomes of a batch write, keyed by ledger transaction ID."""

    outcomes: dict[UUID, RecordOutcome] = field(default_factory=dict)

    @property
    def applied(self) -> int:
        return self._count(RecordOutcome.APPLIED)

    @property
    def duplicate_conflicts(self) -> int:
        return self._count(RecordOutcome.DUPLICATE_CONFLICT)

    @property
    def failed(self) -> int:
        return self._count(RecordOutcome.FAILED)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def _count(self, outcome: RecordOutcome) -> int:
        return sum(1 for o in self.outcomes.values() if o == outcome)

    @classmethod
    def empty(cls) -> BatchResult:
        return cls(outcomes={})

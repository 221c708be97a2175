"""Batch-level duplicate detection against the ledger."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from ledgerflow.domain.imports import CandidateRecord
from ledgerflow.domain.ledger import LedgerTransactionRepository

logger = logging.getLogger(__name__)


def dedup_key(candidate: CandidateRecord) -> Optional[str]:
    """Normalized external ID, or None when the record has none."""
    if candidate.external_id is None:
        return None
    key = str(candidate.external_id).strip()
    return key or None


class DeduplicationIndex:
    """
    Drops candidates whose ``(account_id, external_id)`` is already stored.

    One bulk lookup per batch. This is an optimization only: two imports
    racing on the same account can both see a record as new, and the
    storage-level uniqueness constraint settles that in the batch applier.
    """

    def __init__(self, ledger_repository: LedgerTransactionRepository):
        self._ledger_repo = ledger_repository

    async def filter_new(
        self,
        candidates: list[CandidateRecord],
        account_id: UUID,
    ) -> tuple[list[CandidateRecord], int]:
        """
        Split a batch into new candidates and a duplicate count.

        Repeats of one external ID inside the batch count as duplicates
        after the first. Candidates without an external ID are passed on so
        the mapper can reject them as errors rather than duplicates.

        Returns
        -------
        Tuple of (new candidates in input order, number of duplicates)
        """
        keys = {key for c in candidates if (key := dedup_key(c)) is not None}
        existing: set[str] = set()
        if keys:
            existing = await self._ledger_repo.find_existing_external_ids(
                account_id,
                sorted(keys),
            )

        new_candidates: list[CandidateRecord] = []
        seen: set[str] = set()
        duplicates = 0
        for candidate in candidates:
            key = dedup_key(candidate)
            if key is None:
                new_candidates.append(candidate)
                continue
            if key in existing or key in seen:
                duplicates += 1
                continue
            seen.add(key)
            new_candidates.append(candidate)

        if duplicates:
            logger.debug(
                "Dedup for account %s: %d new, %d duplicates",
                account_id,
                len(new_candidates),
                duplicates,
            )
        return new_candidates, duplicates

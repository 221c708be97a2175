"""Transaction provider port.

Abstracts the bank-data provider so the import engine never sees HTTP
clients or provider payload formats.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from ledgerflow.domain.imports import CandidateRecord


@dataclass(frozen=True)
class ProviderPage:
    """One page of a cursor-based transaction feed."""

    records: list[CandidateRecord] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False


class TransactionProviderPort(ABC):
    """Port for pulling transactions from the external provider."""

    @abstractmethod
    async def fetch_transactions(
        self,
        account_id: UUID,
        cursor: Optional[str],
    ) -> ProviderPage:
        """
        Fetch the next page of transactions after ``cursor``.

        Raises
        ------
        ProviderRateLimitedError, InstitutionUnavailableError
            Transient conditions; the caller retries with backoff
        PaginationMutationError
            Data changed while paging; restart from the original cursor
        ProviderReauthRequiredError
            The user has to reconnect; retrying will not help
        """

    async def estimate_transaction_count(self, account_id: UUID) -> Optional[int]:
        """Rough number of records a sync would return, None if unknown."""
        return None

"""Repository interface for ledger transactions."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from uuid import UUID

from ledgerflow.domain.ledger.entities import LedgerTransaction


class LedgerTransactionRepository(ABC):
    """Repository interface for writing imported ledger transactions."""

    @abstractmethod
    async def find_existing_external_ids(
        self,
        account_id: UUID,
        external_ids: Iterable[str],
    ) -> set[str]:
        """
        Return which external IDs already exist for an account.

        Implementations must answer with a single bulk lookup. Soft-deleted
        transactions do not count as existing.

        Parameters
        ----------
        account_id
            Ledger account the candidates belong to
        external_ids
            External IDs to check

        Returns
        -------
        Subset of ``external_ids`` already stored for the account
        """

    @abstractmethod
    async def add_batch(self, transactions: list[LedgerTransaction]) -> set[UUID]:
        """
        Insert transactions in one statement, ignoring dedup-key conflicts.

        Parameters
        ----------
        transactions
            Mapped transactions to insert

        Returns
        -------
        IDs of the transactions actually written. Any transaction missing
        from the result lost a uniqueness race and was not written.

        Raises
        ------
        StorageUnavailableError
            If the store cannot be reached
        RecordWriteError
            If the statement failed for any other reason
        """

    @abstractmethod
    async def add(self, transaction: LedgerTransaction) -> bool:
        """
        Insert a single transaction, ignoring a dedup-key conflict.

        Returns
        -------
        True if written, False if an equivalent row already existed
        """

    @abstractmethod
    async def find_by_external_id(
        self,
        account_id: UUID,
        external_id: str,
    ) -> Optional[LedgerTransaction]:
        """Find the live transaction for a dedup key."""

    @abstractmethod
    async def count_for_account(self, account_id: UUID) -> int:
        """Count live transactions for an account."""

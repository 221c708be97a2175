"""Repository interface for provider sync cursors."""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID


class SyncCursorRepository(ABC):
    """Stores how far each account has been synced with the provider."""

    @abstractmethod
    async def get_cursor(self, account_id: UUID) -> Optional[str]:
        """Return the last fully applied cursor, or None before the first sync."""

    @abstractmethod
    async def save_cursor(self, account_id: UUID, cursor: Optional[str]) -> None:
        """
        Store the cursor for an account.

        Only call this after every record fetched up to ``cursor`` has been
        applied, otherwise records between the two cursors are lost.
        """

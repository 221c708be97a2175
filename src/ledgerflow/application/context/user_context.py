"""User context for request-scoped user identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID


@dataclass(frozen=True)
class UserContext:
    """
    Immutable context for the current user.

    This is created once per request/command execution and passed to
    repositories. Repositories use the user_id to automatically filter
    all queries to the current user's data. ``household_id`` is the
    shared ledger context imported transactions are attached to.
    """

    user_id: UUID
    household_id: Optional[UUID] = None

    @classmethod
    def from_values(
        cls,
        user_id: UUID,
        household_id: Optional[UUID] = None,
    ) -> UserContext:
        return cls(user_id=user_id, household_id=household_id)

    @property
    def context_id(self) -> UUID:
        return self.household_id or self.user_id

    def __str__(self) -> str:
        return f"UserContext({self.user_id})"

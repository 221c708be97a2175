"""SQLAlchemy implementation of SyncCursorRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.domain.imports import SyncCursorRepository
from ledgerflow.domain.shared.time import utc_now
from ledgerflow.infrastructure.persistence.sqlalchemy.models import SyncCursorModel

if TYPE_CHECKING:
    from ledgerflow.application.context import UserContext


class SyncCursorRepositorySQLAlchemy(SyncCursorRepository):
    """SQLAlchemy implementation of SyncCursorRepository."""

    def __init__(self, session: AsyncSession, user_context: UserContext):
        self._session = session
        self._user_id = user_context.user_id

    async def get_cursor(self, account_id: UUID) -> Optional[str]:
        model = await self._find(account_id)
        return model.cursor if model else None

    async def save_cursor(self, account_id: UUID, cursor: Optional[str]) -> None:
        model = await self._find(account_id)
        now = utc_now()

        if model:
            model.cursor = cursor
            model.last_synced_at = now
        else:
            self._session.add(
                SyncCursorModel(
                    id=uuid4(),
                    user_id=self._user_id,
                    account_id=account_id,
                    cursor=cursor,
                    last_synced_at=now,
                ),
            )

        await self._session.flush()

    async def _find(self, account_id: UUID) -> Optional[SyncCursorModel]:
        stmt = select(SyncCursorModel).where(
            SyncCursorModel.user_id == self._user_id,
            SyncCursorModel.account_id == account_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

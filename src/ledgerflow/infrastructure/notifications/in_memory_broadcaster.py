"""In-process fan-out of import job snapshots."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator
from uuid import UUID

from ledgerflow.application.dtos.imports import ImportJobStatusDTO
from ledgerflow.application.ports import JobChangeNotifier

logger = logging.getLogger(__name__)


class InMemoryJobChangeBroadcaster(JobChangeNotifier):
    """
    Delivers published snapshots to every subscriber of the same job.

    Each subscriber gets a bounded queue. When a slow subscriber's queue is
    full the oldest snapshot is dropped, since only the latest state matters.
    Only reaches subscribers in the same process; clients must be able to
    fall back to polling.
    """

    def __init__(self, queue_size: int = 32):
        self._queue_size = queue_size
        self._subscribers: dict[UUID, set[asyncio.Queue]] = defaultdict(set)

    def subscriber_count(self, job_id: UUID) -> int:
        return len(self._subscribers.get(job_id, ()))

    @asynccontextmanager
    async def subscribe(
        self,
        job_id: UUID,
    ) -> AsyncIterator[asyncio.Queue[ImportJobStatusDTO]]:
        queue: asyncio.Queue[ImportJobStatusDTO] = asyncio.Queue(
            maxsize=self._queue_size,
        )
        self._subscribers[job_id].add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(job_id)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[job_id]

    async def publish(self, snapshot: ImportJobStatusDTO) -> None:
        for queue in list(self._subscribers.get(snapshot.job_id, ())):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(snapshot)
        logger.debug(
            "Published job %s snapshot (%s, %d%%)",
            snapshot.job_id,
            snapshot.status,
            snapshot.progress,
        )

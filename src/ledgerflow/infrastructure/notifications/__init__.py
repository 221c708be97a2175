"""Job change notification adapters."""

from ledgerflow.infrastructure.notifications.in_memory_broadcaster import (
    InMemoryJobChangeBroadcaster,
)

__all__ = ["InMemoryJobChangeBroadcaster"]

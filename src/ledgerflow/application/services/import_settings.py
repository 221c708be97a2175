"""Tuning knobs of the import engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ledgerflow_config.settings import Settings


@dataclass(frozen=True)
class ImportSettings:
    """Engine-facing projection of the application settings."""

    sync_threshold: int = 1000
    batch_size: int = 20
    batch_delay_ms: int = 100
    progress_interval: int = 100
    provider_max_retries: int = 3
    provider_retry_base_delay_seconds: float = 1.0
    provider_max_pagination_restarts: int = 3

    def __post_init__(self) -> None:
        if self.sync_threshold < 1:
            msg = "sync_threshold must be at least 1"
            raise ValueError(msg)
        if self.batch_size < 1:
            msg = "batch_size must be at least 1"
            raise ValueError(msg)

    @property
    def batch_delay_seconds(self) -> float:
        return self.batch_delay_ms / 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> ImportSettings:
        return cls(
            sync_threshold=settings.import_sync_threshold,
            batch_size=settings.import_batch_size,
            batch_delay_ms=settings.import_batch_delay_ms,
            progress_interval=settings.import_progress_interval,
            provider_max_retries=settings.provider_max_retries,
            provider_retry_base_delay_seconds=(
                settings.provider_retry_base_delay_seconds
            ),
            provider_max_pagination_restarts=(
                settings.provider_max_pagination_restarts
            ),
        )

"""Descriptions of where an import's records come from."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union
from uuid import UUID

from ledgerflow.domain.imports import CandidateRecord, JobType


@dataclass(frozen=True)
class UploadSource:
    """Records already in hand, e.g. from a parsed file.

    With ``account_id`` None every record is routed by its ``account_ref``.
    """

    records: list[CandidateRecord]
    account_id: Optional[UUID] = None

    job_type = JobType.BULK_UPLOAD

    @property
    def account_ids(self) -> list[UUID]:
        return [self.account_id] if self.account_id else []

    @property
    def known_item_count(self) -> Optional[int]:
        return len(self.records)


@dataclass(frozen=True)
class ProviderSource:
    """Records to be pulled from the transaction provider, one account at a time."""

    account_ids: list[UUID] = field(default_factory=list)
    estimated_items: Optional[int] = None

    job_type = JobType.PROVIDER_SYNC

    @property
    def account_id(self) -> Optional[UUID]:
        return self.account_ids[0] if len(self.account_ids) == 1 else None

    @property
    def known_item_count(self) -> Optional[int]:
        return self.estimated_items


ImportSource = Union[UploadSource, ProviderSource]

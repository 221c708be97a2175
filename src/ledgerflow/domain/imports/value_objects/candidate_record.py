"""Candidate record value object."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

RawAmount = Union[Decimal, int, float, str, None]
RawDate = Union[date, datetime, str, None]


@dataclass(frozen=True)
class CandidateRecord:
    """
    One external transaction as received from a provider or upload.

    Values are kept raw: the amount is signed in the provider's convention
    (positive means money leaving the account) and the date may still be a
    string. Validation happens in the record mapper, never here, so that a
    malformed record can still be counted as a per-record error.
    """

    external_id: Optional[str]
    amount: RawAmount
    date: RawDate
    description: str = ""
    merchant_name: Optional[str] = None
    category_tags: tuple[str, ...] = field(default_factory=tuple)
    primary_category: Optional[str] = None
    payment_channel: Optional[str] = None
    account_ref: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation, used to persist background job payloads."""
        raw_date = self.date
        if isinstance(raw_date, (date, datetime)):
            raw_date = raw_date.isoformat()
        raw_amount = self.amount
        if isinstance(raw_amount, Decimal):
            raw_amount = str(raw_amount)
        return {
            "external_id": self.external_id,
            "amount": raw_amount,
            "date": raw_date,
            "description": self.description,
            "merchant_name": self.merchant_name,
            "category_tags": list(self.category_tags),
            "primary_category": self.primary_category,
            "payment_channel": self.payment_channel,
            "account_ref": self.account_ref,
            "category_id": self.category_id,
            "subcategory_id": self.subcategory_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CandidateRecord:
        tags = data.get("category_tags") or ()
        if isinstance(tags, str):
            tags = (tags,)
        return cls(
            external_id=data.get("external_id"),
            amount=data.get("amount"),
            date=data.get("date"),
            description=data.get("description") or "",
            merchant_name=data.get("merchant_name"),
            category_tags=tuple(str(t) for t in tags),
            primary_category=data.get("primary_category"),
            payment_channel=data.get("payment_channel"),
            account_ref=data.get("account_ref"),
            category_id=data.get("category_id"),
            subcategory_id=data.get("subcategory_id"),
        )

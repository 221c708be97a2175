"""Mapping of candidate records to ledger transactions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from ledgerflow.domain.imports.exceptions import MappingError
from ledgerflow.domain.imports.services.category_hints import (
    CandidateHintProvider,
    CategoryHintProvider,
)
from ledgerflow.domain.imports.value_objects import CandidateRecord
from ledgerflow.domain.ledger import LedgerTransaction, TransactionType
from ledgerflow.domain.shared.exceptions import ErrorCode

TRANSFER_CHANNEL = "transfer"
TRANSFER_TAG_KEYWORD = "transfer"
# Tags mentioning wires are not treated as transfers by the tag rule.
TRANSFER_TAG_EXCLUSION = "wire"
TRANSFER_PRIMARY_CATEGORIES = frozenset({"TRANSFER_IN", "TRANSFER_OUT"})


class RecordMapper:
    """
    Translates one candidate record into a ledger transaction.

    Pure: no I/O and no state beyond the injected hint provider.

    Classification, first match wins:

    1. Transfer, if the payment channel is ``transfer``, or a category tag
       contains ``transfer`` (tags that also contain ``wire`` are ignored
       here), or the primary category is ``TRANSFER_IN``/``TRANSFER_OUT``.
    2. Otherwise by sign: a positive amount is money leaving the account
       (expense), a negative amount is money coming in (income).

    Amounts are stored unsigned.
    """

    def __init__(self, hint_provider: Optional[CategoryHintProvider] = None):
        self._hints = hint_provider or CandidateHintProvider()

    def map(
        self,
        candidate: CandidateRecord,
        account_id: UUID,
        user_id: UUID,
        context_id: Optional[UUID] = None,
    ) -> LedgerTransaction:
        """
        Map a candidate record.

        Raises
        ------
        MappingError
            If the record has no external ID, an unreadable date or an
            amount that is not a finite number
        """
        external_id = self._parse_external_id(candidate)
        amount = self._parse_amount(candidate, external_id)
        booking_date = self._parse_date(candidate, external_id)

        transaction_type = self.classify(candidate, amount)
        suggestion = self._hints.suggest(candidate)

        return LedgerTransaction(
            account_id=account_id,
            user_id=user_id,
            transaction_date=booking_date,
            transaction_type=transaction_type,
            amount=abs(amount),
            external_id=external_id,
            description=candidate.description or candidate.merchant_name or "",
            household_id=context_id,
            category_id=suggestion.category_id,
            subcategory_id=suggestion.subcategory_id,
        )

    @classmethod
    def classify(cls, candidate: CandidateRecord, amount: Decimal) -> TransactionType:
        if cls.is_transfer(candidate):
            return TransactionType.TRANSFER
        if amount < 0:
            return TransactionType.INCOME
        return TransactionType.EXPENSE

    @staticmethod
    def is_transfer(candidate: CandidateRecord) -> bool:
        channel = (candidate.payment_channel or "").strip().lower()
        if channel == TRANSFER_CHANNEL:
            return True

        for tag in candidate.category_tags:
            lowered = tag.lower()
            if TRANSFER_TAG_KEYWORD in lowered and TRANSFER_TAG_EXCLUSION not in lowered:
                return True

        return candidate.primary_category in TRANSFER_PRIMARY_CATEGORIES

    @staticmethod
    def _parse_external_id(candidate: CandidateRecord) -> str:
        raw = candidate.external_id
        if raw is None or not str(raw).strip():
            raise MappingError("missing external id")
        return str(raw).strip()

    @staticmethod
    def _parse_amount(candidate: CandidateRecord, external_id: str) -> Decimal:
        raw = candidate.amount
        if raw is None or isinstance(raw, bool):
            raise MappingError("missing amount", external_id, ErrorCode.INVALID_AMOUNT)

        try:
            if isinstance(raw, Decimal):
                amount = raw
            elif isinstance(raw, float):
                amount = Decimal(repr(raw))
            else:
                amount = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError) as e:
            raise MappingError(
                f"unparsable amount {raw!r}",
                external_id,
                ErrorCode.INVALID_AMOUNT,
            ) from e

        if not amount.is_finite():
            raise MappingError(
                f"non-finite amount {raw!r}",
                external_id,
                ErrorCode.INVALID_AMOUNT,
            )
        return amount

    @staticmethod
    def _parse_date(candidate: CandidateRecord, external_id: str) -> date:
        raw = candidate.date
        if isinstance(raw, datetime):
            return raw.date()
        if isinstance(raw, date):
            return raw
        if not raw or not str(raw).strip():
            raise MappingError("missing date", external_id, ErrorCode.INVALID_DATE)

        text = str(raw).strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError as e:
            raise MappingError(
                f"unparsable date {text!r}",
                external_id,
                ErrorCode.INVALID_DATE,
            ) from e

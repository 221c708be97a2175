"""Ledger transaction entity written by the import engine."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from ledgerflow.domain.ledger.value_objects import TransactionType
from ledgerflow.domain.shared.time import utc_now


class LedgerTransaction:
    """
    A single transaction in a user's ledger.

    The amount is always stored unsigned; the direction of the money
    movement is carried by ``type``. ``external_id`` is the provider's
    identifier and, together with ``account_id``, forms the dedup key.
    Category fields are suggestions made at import time only.
    """

    def __init__(  # noqa: PLR0913
        self,
        account_id: UUID,
        user_id: UUID,
        transaction_date: date,
        transaction_type: TransactionType,
        amount: Decimal,
        external_id: Optional[str] = None,
        description: str = "",
        household_id: Optional[UUID] = None,
        category_id: Optional[str] = None,
        subcategory_id: Optional[str] = None,
        # For reconstitution from persistence:
        id: Optional[UUID] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        deleted_at: Optional[datetime] = None,
    ):
        self._id = id or uuid4()
        self._account_id = account_id
        self._user_id = user_id
        self._date = transaction_date
        self._type = transaction_type
        self._amount = amount
        self._external_id = external_id
        self._description = description
        self._household_id = household_id
        self._category_id = category_id
        self._subcategory_id = subcategory_id
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or utc_now()
        self._deleted_at = deleted_at

        self._validate()

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def account_id(self) -> UUID:
        return self._account_id

    @property
    def user_id(self) -> UUID:
        return self._user_id

    @property
    def date(self) -> date:
        return self._date

    @property
    def type(self) -> TransactionType:
        return self._type

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def signed_amount(self) -> Decimal:
        """Amount from the account holder's perspective (outflows negative)."""
        if self._type == TransactionType.INCOME:
            return self._amount
        return -self._amount

    @property
    def external_id(self) -> Optional[str]:
        return self._external_id

    @property
    def description(self) -> str:
        return self._description

    @property
    def household_id(self) -> Optional[UUID]:
        return self._household_id

    @property
    def category_id(self) -> Optional[str]:
        return self._category_id

    @property
    def subcategory_id(self) -> Optional[str]:
        return self._subcategory_id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def deleted_at(self) -> Optional[datetime]:
        return self._deleted_at

    @property
    def is_deleted(self) -> bool:
        return self._deleted_at is not None

    def _validate(self) -> None:
        if self._amount < 0:
            msg = "Ledger amounts are stored unsigned"
            raise ValueError(msg)
        if self._external_id is not None and not self._external_id.strip():
            msg = "External ID cannot be blank"
            raise ValueError(msg)

    def dedup_key(self) -> tuple[UUID, Optional[str]]:
        return (self._account_id, self._external_id)

    def soft_delete(self) -> None:
        if self._deleted_at is None:
            self._deleted_at = utc_now()
            self._updated_at = self._deleted_at

    @classmethod
    def reconstitute(  # noqa: PLR0913
        cls,
        id: UUID,
        account_id: UUID,
        user_id: UUID,
        transaction_date: date,
        transaction_type: TransactionType,
        amount: Decimal,
        external_id: Optional[str],
        description: str,
        household_id: Optional[UUID],
        category_id: Optional[str],
        subcategory_id: Optional[str],
        created_at: datetime,
        updated_at: datetime,
        deleted_at: Optional[datetime],
    ) -> "LedgerTransaction":
        return cls(
            account_id=account_id,
            user_id=user_id,
            transaction_date=transaction_date,
            transaction_type=transaction_type,
            amount=amount,
            external_id=external_id,
            description=description,
            household_id=household_id,
            category_id=category_id,
            subcategory_id=subcategory_id,
            id=id,
            created_at=created_at,
            updated_at=updated_at,
            deleted_at=deleted_at,
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, LedgerTransaction):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __str__(self) -> str:
        return (
            f"LedgerTransaction[{self._type.value}]: "
            f"{self._amount} on {self._date} ({self._external_id})"
        )

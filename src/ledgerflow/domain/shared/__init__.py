"""Shared domain building blocks."""

from ledgerflow.domain.shared.exceptions import (
    BusinessRuleViolation,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)
from ledgerflow.domain.shared.time import utc_now

__all__ = [
    "BusinessRuleViolation",
    "DomainException",
    "EntityNotFoundError",
    "ErrorCode",
    "ValidationError",
    "utc_now",
]

"""Shared domain exceptions and error codes.

This module defines the base exception hierarchy and error codes for the
entire domain layer. All domain exceptions should inherit from DomainException
to enable centralized exception handling in the presentation layer.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API clients.

    These codes are part of the public API contract. Should not be changed.
    """

    # Validation Errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_DATE = "INVALID_DATE"
    INVALID_RECORD = "INVALID_RECORD"
    INVALID_UPLOAD = "INVALID_UPLOAD"

    # Not Found Errors (404)
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    IMPORT_JOB_NOT_FOUND = "IMPORT_JOB_NOT_FOUND"

    # Business Rule Violations (422)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    JOB_ALREADY_FINISHED = "JOB_ALREADY_FINISHED"
    INVALID_JOB_TRANSITION = "INVALID_JOB_TRANSITION"
    COUNTER_INVARIANT_VIOLATED = "COUNTER_INVARIANT_VIOLATED"

    # Provider Errors (401/429/503)
    PROVIDER_REAUTH_REQUIRED = "PROVIDER_REAUTH_REQUIRED"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"
    INSTITUTION_UNAVAILABLE = "INSTITUTION_UNAVAILABLE"
    PROVIDER_PAGINATION_MUTATED = "PROVIDER_PAGINATION_MUTATED"
    PROVIDER_RETRIES_EXHAUSTED = "PROVIDER_RETRIES_EXHAUSTED"
    PROVIDER_ERROR = "PROVIDER_ERROR"

    # Storage Errors
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    RECORD_WRITE_FAILED = "RECORD_WRITE_FAILED"

    # General Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class DomainException(Exception):  # NOQA: N818
    """Base exception for all domain-related errors.

    This exception provides structured error information that can be
    used by the presentation layer to generate consistent API responses.

    Attributes
    ----------
    message
        Human-readable error message (safe for end users)
    code
        Stable error code for programmatic handling
    details
        Optional additional context (logged but not exposed to users)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code.value!r}, "
            f"details={self.details!r})"
        )


class ValidationError(DomainException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class BusinessRuleViolation(DomainException):
    """Raised when a business rule or domain invariant is violated."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EntityNotFoundError(DomainException):
    """Raised when a requested entity cannot be found."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.ENTITY_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)

"""Centralized exception handlers for the FastAPI application.

Domain exceptions are mapped to HTTP responses with a consistent error
format.

Error Response Format:
    {
        "detail": "Human-readable error message",
        "code": "MACHINE_READABLE_ERROR_CODE"
    }

Usage:
    from ledgerflow.presentation.api.exception_handlers import (
        setup_exception_handlers,
    )

    app = FastAPI()
    setup_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ledgerflow.domain.imports.exceptions import (
    ProviderError,
    ProviderRateLimitedError,
    StorageUnavailableError,
)
from ledgerflow.domain.shared.exceptions import (
    BusinessRuleViolation,
    DomainException,
    EntityNotFoundError,
    ErrorCode,
    ValidationError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Code to HTTP Status Mapping
# =============================================================================

ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    # 400 Bad Request - validation errors
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_DATE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_RECORD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_UPLOAD: status.HTTP_400_BAD_REQUEST,
    # 404 Not Found
    ErrorCode.ENTITY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.IMPORT_JOB_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    # 409 Conflict - job already finished
    ErrorCode.JOB_ALREADY_FINISHED: status.HTTP_409_CONFLICT,
    # 422 Unprocessable Entity - business rule violations
    ErrorCode.BUSINESS_RULE_VIOLATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_JOB_TRANSITION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    # 401/429/502/503 - provider errors
    ErrorCode.PROVIDER_REAUTH_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.PROVIDER_RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.INSTITUTION_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.PROVIDER_PAGINATION_MUTATED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.PROVIDER_RETRIES_EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.PROVIDER_ERROR: status.HTTP_502_BAD_GATEWAY,
    # 503 Service Unavailable - storage
    ErrorCode.STORAGE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    # 500 Internal Server Error
    ErrorCode.RECORD_WRITE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.COUNTER_INVARIANT_VIOLATED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _get_status_for_exception(exc: DomainException) -> int:
    """Determine HTTP status code for a domain exception.

    Uses the error code mapping, with fallback based on exception type.
    """
    if exc.code in ERROR_CODE_TO_STATUS:
        return ERROR_CODE_TO_STATUS[exc.code]

    if isinstance(exc, EntityNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, BusinessRuleViolation):
        return status.HTTP_422_UNPROCESSABLE_ENTITY

    return status.HTTP_400_BAD_REQUEST


def _create_error_response(
    status_code: int,
    message: str,
    code: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "code": code,
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application.

    Parameters
    ----------
    app
        The FastAPI application instance
    """

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle all domain exceptions with structured response."""
        status_code = _get_status_for_exception(exc)

        logger.warning(
            "Domain exception on %s %s: %s (code=%s, details=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
            exc.details,
        )

        return _create_error_response(
            status_code=status_code,
            message=exc.message,
            code=exc.code.value,
        )

    @app.exception_handler(ProviderError)
    async def provider_exception_handler(
        request: Request,
        exc: ProviderError,
    ) -> JSONResponse:
        """Handle provider errors.

        Logged at warning level since they point at the external provider
        rather than at application bugs.
        """
        logger.warning(
            "Provider error on %s %s: %s (code=%s)",
            request.method,
            request.url.path,
            exc.message,
            exc.code.value,
        )

        headers = None
        if (
            isinstance(exc, ProviderRateLimitedError)
            and exc.retry_after_seconds is not None
        ):
            headers = {"Retry-After": str(int(exc.retry_after_seconds))}

        return _create_error_response(
            status_code=_get_status_for_exception(exc),
            message=exc.message,
            code=exc.code.value,
            headers=headers,
        )

    @app.exception_handler(StorageUnavailableError)
    async def storage_exception_handler(
        request: Request,
        exc: StorageUnavailableError,
    ) -> JSONResponse:
        logger.error(
            "Storage unavailable on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
        )
        return _create_error_response(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            message="Storage is temporarily unavailable. Please try again later.",
            code=ErrorCode.STORAGE_UNAVAILABLE.value,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unhandled exceptions with consistent error format.

        This is the catch-all handler for any exceptions not handled by
        the domain-specific handlers above.
        """
        logger.exception(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
        )
        return _create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An internal error occurred",
            code=ErrorCode.INTERNAL_ERROR.value,
        )

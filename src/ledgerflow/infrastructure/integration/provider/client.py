"""HTTP client for the bank-data provider's transaction feed."""

from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import UUID

import httpx

from ledgerflow.application.ports import ProviderPage, TransactionProviderPort
from ledgerflow.domain.imports import CandidateRecord
from ledgerflow.domain.imports.exceptions import (
    InstitutionUnavailableError,
    PaginationMutationError,
    ProviderError,
    ProviderRateLimitedError,
    ProviderReauthRequiredError,
)

logger = logging.getLogger(__name__)

_REAUTH_ERROR_CODES = frozenset({"ITEM_LOGIN_REQUIRED", "INVALID_CREDENTIALS"})
_MUTATION_ERROR_CODE = "TRANSACTIONS_SYNC_MUTATION_DURING_PAGINATION"
_UNAVAILABLE_STATUSES = frozenset({502, 503, 504})


class HttpTransactionProvider(TransactionProviderPort):
    """
    Cursor-based transaction feed over HTTP.

    Expects ``GET /accounts/{account_id}/transactions?cursor=...`` to answer
    with ``{"added": [...], "next_cursor": "...", "has_more": bool}``.
    Error responses are translated into the import domain's provider errors.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_transactions(
        self,
        account_id: UUID,
        cursor: Optional[str],
    ) -> ProviderPage:
        params = {"cursor": cursor} if cursor else {}
        client = await self._get_client()
        try:
            response = await client.get(
                f"/accounts/{account_id}/transactions",
                params=params,
            )
        except (httpx.ConnectError, httpx.TimeoutException) as e:
            logger.warning("Provider request for account %s failed: %s", account_id, e)
            raise InstitutionUnavailableError() from e

        self._raise_for_error(response, account_id)

        body = response.json()
        raw_records = body.get("added", body.get("records", []))
        records = [self._to_candidate(raw, account_id) for raw in raw_records]
        return ProviderPage(
            records=records,
            next_cursor=body.get("next_cursor"),
            has_more=bool(body.get("has_more", False)),
        )

    async def estimate_transaction_count(self, account_id: UUID) -> Optional[int]:
        """Ask the provider for a volume estimate; None when it cannot say."""
        client = await self._get_client()
        try:
            response = await client.get(f"/accounts/{account_id}/transactions/count")
            response.raise_for_status()
            count = response.json().get("count")
        except httpx.HTTPError as e:
            logger.debug("No volume estimate for account %s: %s", account_id, e)
            return None
        return int(count) if count is not None else None

    # -------------------------------------------------------------------------
    # Translation helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _raise_for_error(response: httpx.Response, account_id: UUID) -> None:
        status = response.status_code
        if status < 400:
            return

        error_code = _error_code_of(response)

        if status == 429:
            raise ProviderRateLimitedError(_retry_after(response))
        if status in _UNAVAILABLE_STATUSES:
            raise InstitutionUnavailableError()
        if status in (401, 403) or error_code in _REAUTH_ERROR_CODES:
            raise ProviderReauthRequiredError(account_id)
        if error_code == _MUTATION_ERROR_CODE:
            raise PaginationMutationError(account_id)

        logger.warning(
            "Provider returned error %d: %s",
            status,
            response.text[:200] if response.text else "no body",
        )
        raise ProviderError(
            f"Transaction provider returned HTTP {status}",
            details={"status_code": status, "error_code": error_code},
        )

    @staticmethod
    def _to_candidate(raw: dict[str, Any], account_id: UUID) -> CandidateRecord:
        category = raw.get("personal_finance_category") or {}
        tags = raw.get("category") or ()
        if isinstance(tags, str):
            tags = (tags,)
        return CandidateRecord(
            external_id=raw.get("transaction_id") or raw.get("external_id"),
            amount=raw.get("amount"),
            date=raw.get("date"),
            description=raw.get("name") or raw.get("description") or "",
            merchant_name=raw.get("merchant_name"),
            category_tags=tuple(str(t) for t in tags),
            primary_category=category.get("primary") or raw.get("primary_category"),
            payment_channel=raw.get("payment_channel"),
            account_ref=str(account_id),
        )


def _error_code_of(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error_code")
    return None


def _retry_after(response: httpx.Response) -> Optional[float]:
    header = response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return max(float(header), 0.0)
    except ValueError:
        return None

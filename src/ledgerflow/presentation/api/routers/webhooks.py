"""Webhooks router for provider notifications."""

import logging

from fastapi import APIRouter, Response, status

from ledgerflow.application.dtos.imports import ProviderSource
from ledgerflow.presentation.api.dependencies import Orchestrator
from ledgerflow.presentation.api.schemas.imports import (
    ProviderWebhookRequest,
    WebhookAckResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SYNC_WEBHOOK_TYPE = "TRANSACTIONS"
SYNC_WEBHOOK_CODES = frozenset(
    {
        "INITIAL_UPDATE",
        "HISTORICAL_UPDATE",
        "DEFAULT_UPDATE",
        "SYNC_UPDATES_AVAILABLE",
    },
)


@router.post(
    "/provider",
    summary="Receive a provider webhook",
    responses={
        200: {"description": "Webhook acknowledged, nothing to do"},
        202: {"description": "Background sync started"},
    },
)
async def provider_webhook(
    body: ProviderWebhookRequest,
    response: Response,
    orchestrator: Orchestrator,
) -> WebhookAckResponse:
    """
    Start a background sync when the provider reports new transactions.

    Only `TRANSACTIONS` webhooks with an update code trigger a sync; every
    other webhook is acknowledged and ignored. The sync always runs as a
    background job, so the provider gets an answer right away.
    """
    logger.info(
        "Provider webhook %s:%s (item=%s, accounts=%d)",
        body.webhook_type,
        body.webhook_code,
        body.item_id,
        len(body.account_ids),
    )

    if (
        body.webhook_type.upper() != SYNC_WEBHOOK_TYPE
        or body.webhook_code.upper() not in SYNC_WEBHOOK_CODES
    ):
        return WebhookAckResponse(
            accepted=False,
            message=f"Ignored {body.webhook_type}:{body.webhook_code}",
        )

    if not body.account_ids:
        return WebhookAckResponse(
            accepted=False,
            message="No accounts to sync",
        )

    source = ProviderSource(
        account_ids=list(body.account_ids),
        estimated_items=body.new_transactions,
    )
    result = await orchestrator.start_import(source, force_async=True)

    response.status_code = status.HTTP_202_ACCEPTED
    return WebhookAckResponse(
        accepted=True,
        job_id=result.job_id,
        message="Sync started",
    )

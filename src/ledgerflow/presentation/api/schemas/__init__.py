"""API request/response schemas."""

from ledgerflow.presentation.api.schemas.imports import (
    CandidateRecordRequest,
    ImportJobListResponse,
    ImportJobResponse,
    ProviderSyncRequest,
    ProviderWebhookRequest,
    StartImportResponse,
    SyncImportResultResponse,
    UploadImportRequest,
    WebhookAckResponse,
)

__all__ = [
    "CandidateRecordRequest",
    "ImportJobListResponse",
    "ImportJobResponse",
    "ProviderSyncRequest",
    "ProviderWebhookRequest",
    "StartImportResponse",
    "SyncImportResultResponse",
    "UploadImportRequest",
    "WebhookAckResponse",
]

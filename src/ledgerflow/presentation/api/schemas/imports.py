"""Import schemas for API request/response models."""

from datetime import datetime
from typing import Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CandidateRecordRequest(BaseModel):
    """One external transaction in an upload.

    Values are accepted as sent; records that cannot be mapped are counted
    as errors instead of rejecting the whole upload.
    """

    external_id: Optional[str] = Field(
        None,
        description="Provider or file identifier, unique per account",
    )
    amount: Union[str, float, int, None] = Field(
        None,
        description="Signed amount; positive = money out, negative = money in",
    )
    date: Optional[str] = Field(None, description="Booking date (ISO 8601)")
    description: str = Field("", description="Free-text purpose or name")
    merchant_name: Optional[str] = None
    category_tags: list[str] = Field(default_factory=list)
    primary_category: Optional[str] = Field(
        None,
        description="Provider category, e.g. TRANSFER_IN",
    )
    payment_channel: Optional[str] = Field(None, description="e.g. online, transfer")
    account_ref: Optional[str] = Field(
        None,
        description="Target account UUID when the upload spans several accounts",
    )
    category_id: Optional[str] = Field(
        None,
        description="Suggested category, only applied when the record is new",
    )
    subcategory_id: Optional[str] = Field(None, description="Suggested subcategory")


class UploadImportRequest(BaseModel):
    """Request schema for importing a batch of records."""

    account_id: Optional[UUID] = Field(
        None,
        description="Target account; omit to route each record by account_ref",
    )
    records: list[CandidateRecordRequest] = Field(default_factory=list)
    force_async: bool = Field(
        False,
        description="Always run as a background job",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "account_id": "550e8400-e29b-41d4-a716-446655440000",
                    "records": [
                        {
                            "external_id": "tx-1001",
                            "amount": "42.00",
                            "date": "2024-12-01",
                            "description": "REWE Markt",
                            "payment_channel": "in store",
                        },
                        {
                            "external_id": "tx-1002",
                            "amount": "-2500.00",
                            "date": "2024-12-01",
                            "description": "Salary",
                        },
                    ],
                },
            ],
        },
    )


class ProviderSyncRequest(BaseModel):
    """Request schema for pulling transactions from the provider."""

    account_ids: list[UUID] = Field(..., min_length=1)
    estimated_items: Optional[int] = Field(
        None,
        ge=0,
        description="Expected volume; the provider is asked when omitted",
    )
    force_async: bool = False

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "account_ids": ["550e8400-e29b-41d4-a716-446655440000"],
                "force_async": False,
            },
        },
    )


class ProviderWebhookRequest(BaseModel):
    """Notification sent by the provider when new data is available."""

    webhook_type: str = Field(..., description="e.g. TRANSACTIONS, ITEM")
    webhook_code: str = Field(..., description="e.g. DEFAULT_UPDATE")
    item_id: Optional[str] = None
    account_ids: list[UUID] = Field(default_factory=list)
    new_transactions: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "webhook_type": "TRANSACTIONS",
                "webhook_code": "DEFAULT_UPDATE",
                "item_id": "item-123",
                "account_ids": ["550e8400-e29b-41d4-a716-446655440000"],
                "new_transactions": 12,
            },
        },
    )


class SyncImportResultResponse(BaseModel):
    """Counts of an import that ran inline."""

    total_items: int
    processed_items: int
    synced_items: int = Field(description="New transactions written")
    skipped_items: int = Field(description="Duplicates of existing transactions")
    error_items: int = Field(description="Records that could not be imported")
    cancelled: bool = Field(
        False,
        description="True if the client went away before all batches ran",
    )
    success: bool


class StartImportResponse(BaseModel):
    """Response for starting an import, inline or in the background."""

    mode: Literal["inline", "background"]
    result: Optional[SyncImportResultResponse] = None
    job_id: Optional[UUID] = Field(
        None,
        description="Poll /imports/jobs/{job_id} for progress",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "mode": "inline",
                    "result": {
                        "total_items": 20,
                        "processed_items": 20,
                        "synced_items": 18,
                        "skipped_items": 0,
                        "error_items": 2,
                        "cancelled": False,
                        "success": False,
                    },
                    "job_id": None,
                },
                {
                    "mode": "background",
                    "result": None,
                    "job_id": "770e8400-e29b-41d4-a716-446655440002",
                },
            ],
        },
    )


class ImportJobResponse(BaseModel):
    """Response schema for an import job's persisted progress."""

    job_id: UUID
    job_type: str = Field(description="provider_sync or bulk_upload")
    account_id: Optional[UUID] = None
    status: str = Field(description="pending, processing, completed, failed")
    progress: int = Field(ge=0, le=100, description="Percent of items processed")
    total_items: int
    processed_items: int
    synced_items: int
    skipped_items: int
    error_items: int
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "job_id": "770e8400-e29b-41d4-a716-446655440002",
                "job_type": "bulk_upload",
                "account_id": "550e8400-e29b-41d4-a716-446655440000",
                "status": "processing",
                "progress": 40,
                "total_items": 5000,
                "processed_items": 2000,
                "synced_items": 1990,
                "skipped_items": 8,
                "error_items": 2,
                "error_message": None,
                "created_at": "2024-12-05T15:00:00Z",
                "updated_at": "2024-12-05T15:00:42Z",
                "completed_at": None,
            },
        },
    )


class ImportJobListResponse(BaseModel):
    """Response for listing import jobs."""

    jobs: list[ImportJobResponse]
    count: int = Field(description="Number of jobs in response")


class WebhookAckResponse(BaseModel):
    """Acknowledgement of a provider webhook."""

    accepted: bool = Field(description="True if a sync was started")
    job_id: Optional[UUID] = None
    message: str

"""Imports router for starting imports and following job progress."""

import asyncio
import json
import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Query,
    Request,
    Response,
    UploadFile,
    status,
)
from fastapi.responses import StreamingResponse

from ledgerflow.application.dtos.imports import (
    ImportJobStatusDTO,
    ProviderSource,
    StartImportResult,
    UploadSource,
)
from ledgerflow.application.queries import GetImportJobQuery, ListImportJobsQuery
from ledgerflow.domain.imports import CandidateRecord, JobStatus
from ledgerflow.domain.shared.exceptions import DomainException, ErrorCode
from ledgerflow.infrastructure.notifications import InMemoryJobChangeBroadcaster
from ledgerflow.infrastructure.parsers import CsvUploadParser
from ledgerflow.infrastructure.persistence.sqlalchemy.repositories import (
    SQLAlchemyRepositoryFactory,
)
from ledgerflow.presentation.api.dependencies import (
    Orchestrator,
    RepoFactory,
    get_job_broadcaster,
    get_session_maker,
)
from ledgerflow.presentation.api.schemas.imports import (
    ImportJobListResponse,
    ImportJobResponse,
    ProviderSyncRequest,
    StartImportResponse,
    SyncImportResultResponse,
    UploadImportRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Seconds between status reads when no change notification arrives.
SSE_POLL_INTERVAL_SECONDS = 2.0


@router.post(
    "/upload",
    summary="Import a batch of records",
    responses={
        200: {"description": "Import ran inline; counts in `result`"},
        202: {"description": "Import queued as background job; see `job_id`"},
        400: {"description": "Invalid request"},
    },
)
async def upload_records(
    request: Request,
    response: Response,
    body: UploadImportRequest,
    orchestrator: Orchestrator,
) -> StartImportResponse:
    """
    Import records sent in the request body.

    Small uploads run inline and return their counts directly. Uploads at
    or above the configured threshold (or with `force_async`) are queued
    and answered with `202 Accepted` and a `job_id`.

    Records already in the ledger are skipped, never duplicated. Records
    that cannot be mapped (missing id, bad amount or date) are counted as
    errors without failing the import.
    """
    source = UploadSource(
        records=[CandidateRecord.from_dict(r.model_dump()) for r in body.records],
        account_id=body.account_id,
    )
    result = await orchestrator.start_import(
        source,
        force_async=body.force_async,
        should_cancel=request.is_disconnected,
    )
    return _to_start_response(result, response)


@router.post(
    "/upload/csv",
    summary="Import a CSV file",
    responses={
        200: {"description": "Import ran inline; counts in `result`"},
        202: {"description": "Import queued as background job; see `job_id`"},
        400: {"description": "File cannot be read as CSV"},
    },
)
async def upload_csv(
    request: Request,
    response: Response,
    orchestrator: Orchestrator,
    file: Annotated[UploadFile, File(description="CSV with a header row")],
    account_id: Annotated[Optional[UUID], Form()] = None,
    force_async: Annotated[bool, Form()] = False,
) -> StartImportResponse:
    """
    Import a CSV file.

    Required columns: `external_id` (or `id`, `transaction_id`), `amount`
    and `date`. Optional: `description`, `merchant_name`, `category`
    (tags separated by `|`), `primary_category`, `payment_channel` and
    `account_ref`. Comma and semicolon delimiters are accepted.
    """
    content = await file.read()
    records = CsvUploadParser().parse(content)
    logger.info(
        "CSV upload %s: %d records",
        file.filename or "<unnamed>",
        len(records),
    )

    source = UploadSource(records=records, account_id=account_id)
    result = await orchestrator.start_import(
        source,
        force_async=force_async,
        should_cancel=request.is_disconnected,
    )
    return _to_start_response(result, response)


@router.post(
    "/sync",
    summary="Sync transactions from the provider",
    responses={
        200: {"description": "Sync ran inline; counts in `result`"},
        202: {"description": "Sync queued as background job; see `job_id`"},
        401: {"description": "Bank connection requires re-authentication"},
        503: {"description": "Provider unavailable after retries"},
    },
)
async def sync_accounts(
    request: Request,
    response: Response,
    body: ProviderSyncRequest,
    orchestrator: Orchestrator,
) -> StartImportResponse:
    """
    Pull new transactions for the given accounts from the provider.

    Each account continues from the cursor stored by its last successful
    sync. When the expected volume is unknown the sync always runs in the
    background.
    """
    source = ProviderSource(
        account_ids=list(body.account_ids),
        estimated_items=body.estimated_items,
    )
    result = await orchestrator.start_import(
        source,
        force_async=body.force_async,
        should_cancel=request.is_disconnected,
    )
    return _to_start_response(result, response)


@router.get(
    "/jobs",
    summary="List import jobs",
    responses={
        200: {"description": "Recent import jobs, newest first"},
    },
)
async def list_import_jobs(
    factory: RepoFactory,
    limit: int = Query(50, ge=1, le=200, description="Max jobs to return"),
    job_status: Optional[JobStatus] = Query(
        None,
        alias="status",
        description="Only jobs in this status",
    ),
) -> ImportJobListResponse:
    """List the current user's import jobs."""
    query = ListImportJobsQuery.from_factory(factory)
    jobs = await query.execute(limit=limit, status=job_status)

    return ImportJobListResponse(
        jobs=[_to_job_response(job) for job in jobs],
        count=len(jobs),
    )


@router.get(
    "/jobs/{job_id}",
    summary="Get import job progress",
    responses={
        200: {"description": "Persisted job counters"},
        404: {"description": "Job not found"},
    },
)
async def get_import_job(
    job_id: UUID,
    factory: RepoFactory,
) -> ImportJobResponse:
    """
    Get the progress of an import job.

    Counters are read from storage and never run ahead of committed work.
    Poll until `status` is `completed` or `failed`.
    """
    query = GetImportJobQuery.from_factory(factory)
    job = await query.execute(job_id)
    return _to_job_response(job)


@router.get(
    "/jobs/{job_id}/events",
    summary="Stream import job progress",
    responses={
        200: {
            "description": "SSE stream of job snapshots",
            "content": {"text/event-stream": {}},
        },
        404: {"description": "Job not found"},
    },
)
async def stream_import_job(
    job_id: UUID,
    request: Request,
    factory: RepoFactory,
    broadcaster: InMemoryJobChangeBroadcaster = Depends(get_job_broadcaster),
) -> StreamingResponse:
    """
    Stream import job progress as Server-Sent Events.

    ## Event Types

    - **job_progress**: Snapshot of the job counters
    - **job_finished**: Final snapshot (`completed` or `failed`); the stream
      ends after it
    - **job_error**: The job could not be read; the stream ends after it

    Snapshots are pushed when the job's persisted state changes and the job
    is re-read every few seconds in case a notification is missed.
    """
    # Raise 404 before the stream starts
    initial = await GetImportJobQuery.from_factory(factory).execute(job_id)
    user_context = factory.user_context

    async def poll() -> ImportJobStatusDTO:
        async with get_session_maker()() as session:
            poll_factory = SQLAlchemyRepositoryFactory(session, user_context)
            return await GetImportJobQuery.from_factory(poll_factory).execute(job_id)

    async def event_generator():
        """Generate SSE events from job snapshots."""
        async with broadcaster.subscribe(job_id) as queue:
            snapshot = initial
            while True:
                if snapshot.is_final:
                    yield _format_sse_event("job_finished", snapshot.to_dict())
                    return
                yield _format_sse_event("job_progress", snapshot.to_dict())

                try:
                    snapshot = await asyncio.wait_for(
                        queue.get(),
                        timeout=SSE_POLL_INTERVAL_SECONDS,
                    )
                except asyncio.TimeoutError:
                    if await request.is_disconnected():
                        logger.debug("SSE client for job %s disconnected", job_id)
                        return
                    try:
                        snapshot = await poll()
                    except DomainException as e:
                        logger.warning("Job %s stream ended: %s", job_id, e.message)
                        yield _format_sse_event(
                            "job_error",
                            {"message": e.message, "code": e.code.value},
                        )
                        return
                    except Exception as e:
                        logger.exception("Job %s stream failed: %s", job_id, e)
                        yield _format_sse_event(
                            "job_error",
                            {
                                "message": "Could not read job progress",
                                "code": ErrorCode.INTERNAL_ERROR.value,
                            },
                        )
                        return

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


def _format_sse_event(event_type: str, data: dict) -> str:
    """Format data as an SSE event string."""
    json_data = json.dumps(data)
    return f"event: {event_type}\ndata: {json_data}\n\n"


def _to_start_response(
    result: StartImportResult,
    response: Response,
) -> StartImportResponse:
    if result.is_background:
        response.status_code = status.HTTP_202_ACCEPTED
        return StartImportResponse(mode="background", job_id=result.job_id)

    sync_result = result.sync_result
    assert sync_result is not None
    return StartImportResponse(
        mode="inline",
        result=SyncImportResultResponse(
            total_items=sync_result.total_items,
            processed_items=sync_result.processed_items,
            synced_items=sync_result.synced_items,
            skipped_items=sync_result.skipped_items,
            error_items=sync_result.error_items,
            cancelled=sync_result.cancelled,
            success=sync_result.success,
        ),
    )


def _to_job_response(job: ImportJobStatusDTO) -> ImportJobResponse:
    return ImportJobResponse(
        job_id=job.job_id,
        job_type=job.job_type,
        account_id=job.account_id,
        status=job.status,
        progress=job.progress,
        total_items=job.total_items,
        processed_items=job.processed_items,
        synced_items=job.synced_items,
        skipped_items=job.skipped_items,
        error_items=job.error_items,
        error_message=job.error_message,
        created_at=job.created_at,
        updated_at=job.updated_at,
        completed_at=job.completed_at,
    )

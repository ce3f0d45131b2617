"""Browser-rendered PDF job endpoints."""
from fastapi import APIRouter, HTTPException, status

from talent_reports.models import EnqueueRequest, EnqueueResult, RenderJobStatus, SignedUrlResponse
from talent_reports.rendering import RenderError, RenderQueue
from talent_reports.reports import ReportError
from talent_reports.routers.reports import http_error
from talent_reports.services import get_s3_storage, get_snowflake_service

router = APIRouter(prefix="/api/v1/reports", tags=["Render Jobs"])


def _queue() -> RenderQueue:
    return RenderQueue(get_snowflake_service(), get_s3_storage())


@router.post(
    "/pdf/queue",
    response_model=EnqueueResult,
    summary="Queue PDF Renders"
)
async def queue_renders(request: EnqueueRequest):
    """Queue up to 100 assignments; already queued, generating or ready rows are skipped."""
    try:
        return _queue().enqueue(request.assignment_ids)
    except ValueError as e:
        raise http_error(e)


@router.get(
    "/{assignment_id}/pdf",
    response_model=RenderJobStatus,
    response_model_by_alias=True,
    summary="Get PDF Render Status"
)
async def get_render_status(assignment_id: str):
    return _queue().get_status(assignment_id)


@router.post(
    "/{assignment_id}/pdf",
    response_model=RenderJobStatus,
    response_model_by_alias=True,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request PDF Render"
)
async def request_render(assignment_id: str):
    """Idempotent: a job already in flight or finished is left alone."""
    try:
        return _queue().request_render(assignment_id)
    except ReportError as e:
        raise http_error(e)


@router.post(
    "/{assignment_id}/pdf/regenerate",
    response_model=RenderJobStatus,
    response_model_by_alias=True,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Regenerate PDF"
)
async def regenerate_render(assignment_id: str):
    try:
        return _queue().regenerate(assignment_id)
    except ReportError as e:
        raise http_error(e)


@router.get(
    "/{assignment_id}/pdf/url",
    response_model=SignedUrlResponse,
    response_model_by_alias=True,
    summary="Get PDF Download URL"
)
async def get_render_url(assignment_id: str):
    try:
        return _queue().signed_url(assignment_id)
    except RenderError as e:
        raise http_error(e)

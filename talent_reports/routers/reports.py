"""Report endpoints: fetch, recompute, feedback assignment and file exports."""
import logging
from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import Response

from talent_reports.config import get_settings
from talent_reports.exports import (
    PDF_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    ReportDebugContext,
    export_filename,
    render_csv,
    render_pdf,
    render_xlsx,
)
from talent_reports.models import FeedbackAssignment, ReportData, ReportFetchResponse
from talent_reports.rendering.errors import RenderNotReadyError
from talent_reports.reports import (
    AssessmentTypeMismatchError,
    AssignmentNotCompletedError,
    AssignmentNotFoundError,
    ReportError,
    ReportService,
)
from talent_reports.services import get_redis_cache, get_snowflake_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


def http_error(exc: Exception) -> HTTPException:
    """Map a domain error to its HTTP status."""
    if isinstance(exc, (AssignmentNotFoundError, RenderNotReadyError)):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (AssessmentTypeMismatchError, AssignmentNotCompletedError, ValueError)):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc))


def _service() -> ReportService:
    return ReportService(get_snowflake_service(), get_redis_cache())


def _attachment(content, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{assignment_id}",
    response_model=ReportFetchResponse,
    summary="Get Report"
)
async def get_report(assignment_id: str, refresh: bool = Query(False)):
    """Cached report, recomputed when missing, stale or when ``refresh`` is set."""
    try:
        return _service().fetch(assignment_id, refresh=refresh)
    except ReportError as e:
        raise http_error(e)


@router.post(
    "/{assignment_id}/generate",
    response_model=ReportData,
    summary="Regenerate Report"
)
async def generate_report(assignment_id: str):
    """Refresh dimension scores, recompute and store the report."""
    try:
        return _service().generate(assignment_id)
    except ReportError as e:
        raise http_error(e)


@router.post(
    "/{assignment_id}/feedback",
    response_model=list[FeedbackAssignment],
    summary="Assign Feedback"
)
async def assign_feedback(assignment_id: str):
    """Replace the assignment's feedback selection from the library."""
    try:
        return _service().assign_feedback(assignment_id)
    except ReportError as e:
        raise http_error(e)


def _report_for_export(assignment_id: str):
    try:
        return _service().fetch(assignment_id).report
    except ReportError as e:
        raise http_error(e)


@router.get("/{assignment_id}/export/csv", summary="Export Report (CSV)")
async def export_csv(assignment_id: str):
    report = _report_for_export(assignment_id)
    debug = ReportDebugContext.from_settings(get_settings())
    return _attachment(render_csv(report, debug), CSV_MEDIA_TYPE, export_filename(report, "csv"))


@router.get("/{assignment_id}/export/xlsx", summary="Export Report (Excel)")
async def export_xlsx(assignment_id: str):
    report = _report_for_export(assignment_id)
    debug = ReportDebugContext.from_settings(get_settings())
    return _attachment(render_xlsx(report, debug), XLSX_MEDIA_TYPE, export_filename(report, "xlsx"))


@router.get("/{assignment_id}/export/pdf", summary="Export Report (PDF)")
async def export_pdf(assignment_id: str):
    """Synchronous reportlab rendering; the browser-rendered artifact lives under ``/pdf``."""
    report = _report_for_export(assignment_id)
    debug = ReportDebugContext.from_settings(get_settings())
    logger.info(f"Rendering PDF export for assignment {assignment_id}")
    return _attachment(render_pdf(report, debug), PDF_MEDIA_TYPE, export_filename(report, "pdf"))

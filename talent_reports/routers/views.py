"""Printable HTML view of a report, loaded by the render worker's browser."""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.templating import Jinja2Templates

from talent_reports.exports.formatting import (
    breakdown_columns,
    closing_feedback,
    fmt_geonorm,
    fmt_optional,
    fmt_score,
    presentation_of,
    show_breakdown,
    strip_html,
    summary_fields,
    yes_no,
)
from talent_reports.models import Report360Data
from talent_reports.reports import ReportError, ReportService
from talent_reports.routers.reports import http_error
from talent_reports.services import get_redis_cache, get_snowflake_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Print View"], include_in_schema=False)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.filters["score"] = fmt_score
templates.env.filters["optional"] = fmt_optional
templates.env.filters["yes_no"] = yes_no
templates.env.filters["plain"] = strip_html


def build_pages(report) -> list[dict]:
    """Summary page, one page per dimension, then a closing feedback page."""
    pages: list[dict] = [{"kind": "summary", "fields": summary_fields(report)}]

    if show_breakdown(report):
        for dim in report.dimensions:
            pages.append({
                "kind": "dimension",
                "dimension": dim,
                "geonorm": fmt_geonorm(dim.geonorm, dim.geonorm_participant_count),
            })

    closing = closing_feedback(report)
    if closing:
        pages.append({"kind": "closing", "feedback": closing})
    return pages


@router.get("/{assignment_id}/view")
async def report_view(
    request: Request,
    assignment_id: str,
    service_role_token: Optional[str] = Query(None),
):
    """Single-use token gated; the token is spent on the first load."""
    cache = get_redis_cache()
    if not service_role_token or not cache.consume_token(service_role_token, assignment_id):
        logger.warning(f"Rejected print view for {assignment_id}: invalid or used token")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired service token"
        )

    try:
        report = ReportService(get_snowflake_service(), cache).fetch(assignment_id).report
    except ReportError as e:
        raise http_error(e)

    pages = build_pages(report)
    return templates.TemplateResponse(
        request,
        "report_view.html",
        {
            "report": report,
            "is_360": isinstance(report, Report360Data),
            "presentation": presentation_of(report),
            "columns": breakdown_columns(report),
            "pages": pages,
        },
    )

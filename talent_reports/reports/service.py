"""Cached report access: fetch, regenerate, feedback."""
import logging
from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import ValidationError

from talent_reports.models.feedback import FeedbackAssignment
from talent_reports.models.report import (
    Report360Data,
    ReportFetchResponse,
    ReportLeaderBlockerData,
    parse_report,
)
from talent_reports.reports import aggregator, feedback
from talent_reports.reports.errors import AssignmentNotCompletedError, AssignmentNotFoundError
from talent_reports.reports.generator import generate_report
from talent_reports.reports.templates import apply_template, load_template
from talent_reports.services.redis_cache import RedisCache
from talent_reports.services.snowflake import SnowflakeService

logger = logging.getLogger(__name__)

AnyReport = Union[Report360Data, ReportLeaderBlockerData]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_stale(row: Optional[dict], completed_at: Optional[datetime]) -> bool:
    """A cached report is stale when missing, empty, or computed before completion."""
    if not row or not row.get("dimension_scores"):
        return True
    calculated_at = _as_utc(row.get("calculated_at"))
    if calculated_at is None:
        return True
    completed = _as_utc(completed_at)
    return completed is not None and calculated_at < completed


class ReportService:
    """Report fetch and recompute over the report_data cache."""

    def __init__(self, db: SnowflakeService, cache: Optional[RedisCache] = None):
        self.db = db
        self.cache = cache

    def _completed_assignment(self, assignment_id: str) -> dict:
        assignment = self.db.get_assignment(assignment_id)
        if not assignment:
            raise AssignmentNotFoundError()
        if not assignment.get("completed"):
            raise AssignmentNotCompletedError()
        return assignment

    def _store(self, report: AnyReport) -> None:
        self.db.upsert_report(
            report.assignment_id,
            report.overall_score,
            report.model_dump_json(),
            report.generated_at,
        )

    def regenerate(self, assignment_id: str, refresh_scores: bool = False) -> AnyReport:
        """Compute the report and store it as the canonical cached copy."""
        if refresh_scores:
            aggregator.refresh_assignment_scores(self.db, assignment_id)
        report = generate_report(self.db, assignment_id)
        self._store(report)
        logger.info(f"Stored {report.report_type} report for assignment {assignment_id}")
        return report

    def fetch(self, assignment_id: str, refresh: bool = False) -> ReportFetchResponse:
        """Cached report with its template applied; recomputed when stale or on request."""
        assignment = self._completed_assignment(assignment_id)
        row = None if refresh else self.db.get_report_row(assignment_id)

        report: Optional[AnyReport] = None
        cached = False
        if not refresh and not is_stale(row, assignment.get("completed_at")):
            try:
                report = parse_report(row["dimension_scores"])
                cached = True
            except ValidationError as e:
                logger.warning(f"Discarding unreadable cached report for {assignment_id}: {e}")

        if report is None:
            report = self.regenerate(assignment_id)

        return ReportFetchResponse(report=self.present(report), cached=cached)

    def present(self, report: AnyReport) -> AnyReport:
        """Template-applied copy of a canonical report."""
        template = load_template(self.db, self.cache, report.assessment_id)
        return apply_template(report, template)

    def generate(self, assignment_id: str) -> AnyReport:
        """Forced recompute, refreshing the dimension-score cache first."""
        self._completed_assignment(assignment_id)
        return self.present(self.regenerate(assignment_id, refresh_scores=True))

    def assign_feedback(self, assignment_id: str) -> list[FeedbackAssignment]:
        """Replace the assignment's feedback and refresh the cached report."""
        self._completed_assignment(assignment_id)
        assigned = feedback.assign_feedback(self.db, assignment_id)
        self.regenerate(assignment_id)
        return assigned

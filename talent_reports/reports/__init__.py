"""Report computation: dimensions, scores, norms, feedback, templates."""
from talent_reports.reports.errors import (
    ReportError,
    AssignmentNotFoundError,
    AssessmentTypeMismatchError,
    AssignmentNotCompletedError,
)
from talent_reports.reports.generator import (
    generate_360_report,
    generate_leader_blocker_report,
    generate_report,
)
from talent_reports.reports.service import ReportService

__all__ = [
    "ReportError",
    "AssignmentNotFoundError",
    "AssessmentTypeMismatchError",
    "AssignmentNotCompletedError",
    "generate_360_report",
    "generate_leader_blocker_report",
    "generate_report",
    "ReportService",
]

"""SQLAlchemy ORM models for the report tables."""
from talent_reports.database.base import Base
from talent_reports.database.orm.report_data import ReportData
from talent_reports.database.orm.assignment_dimension_score import AssignmentDimensionScore
from talent_reports.database.orm.feedback_library import FeedbackLibrary
from talent_reports.database.orm.report_template import ReportTemplate

__all__ = [
    "Base",
    "ReportData",
    "AssignmentDimensionScore",
    "FeedbackLibrary",
    "ReportTemplate",
]

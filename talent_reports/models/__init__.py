"""Pydantic models for the talent report pipeline."""

# Common Models
from talent_reports.models.common import (
    HealthResponse,
)

# Enums
from talent_reports.models.enums import (
    RaterType,
    FeedbackType,
    RenderStatus,
    RENDER_SKIP_STATUSES,
    VALID_RENDER_TRANSITIONS,
    map_role_to_rater_type,
)

# Dimensions
from talent_reports.models.dimension import (
    Dimension,
    DimensionScoreRow,
)

# Reports
from talent_reports.models.report import (
    REPORT_SCHEMA_VERSION,
    RaterBreakdown,
    SubdimensionReport,
    DimensionReport360,
    DimensionReportLeaderBlocker,
    ParticipantResponseSummary,
    Report360Data,
    ReportLeaderBlockerData,
    ReportData,
    ReportFetchResponse,
    parse_report,
)

# Feedback
from talent_reports.models.feedback import (
    FeedbackEntry,
    FeedbackAssignment,
)

# Templates
from talent_reports.models.template import (
    TemplateComponents,
    TemplateLabels,
    ReportTemplate,
    ReportPresentation,
)

# Render jobs
from talent_reports.models.render_job import (
    RenderJob,
    RenderJobStatus,
    EnqueueRequest,
    EnqueueResult,
    SignedUrlResponse,
)

__all__ = [
    # Common
    "HealthResponse",
    # Enums
    "RaterType",
    "FeedbackType",
    "RenderStatus",
    "RENDER_SKIP_STATUSES",
    "VALID_RENDER_TRANSITIONS",
    "map_role_to_rater_type",
    # Dimensions
    "Dimension",
    "DimensionScoreRow",
    # Reports
    "REPORT_SCHEMA_VERSION",
    "RaterBreakdown",
    "SubdimensionReport",
    "DimensionReport360",
    "DimensionReportLeaderBlocker",
    "ParticipantResponseSummary",
    "Report360Data",
    "ReportLeaderBlockerData",
    "ReportData",
    "ReportFetchResponse",
    "parse_report",
    # Feedback
    "FeedbackEntry",
    "FeedbackAssignment",
    # Templates
    "TemplateComponents",
    "TemplateLabels",
    "ReportTemplate",
    "ReportPresentation",
    # Render jobs
    "RenderJob",
    "RenderJobStatus",
    "EnqueueRequest",
    "EnqueueResult",
    "SignedUrlResponse",
]

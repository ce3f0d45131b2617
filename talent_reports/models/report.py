"""Report structure models.

A report is one of two closed shapes, told apart by ``report_type``:

* ``Report360Data`` for multi-rater assessments, with a per-rater-type
  breakdown on every dimension.
* ``ReportLeaderBlockerData`` for single-rater assessments.

Every numeric comparison is optional. Consumers must not assume that
benchmarks, group norms or rater buckets are present, and ``dimensions``
may be empty.
"""
from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter, model_validator

from .template import ReportPresentation

REPORT_SCHEMA_VERSION = 1


class RaterBreakdown(BaseModel):
    """Average score per rater bucket; None when the bucket has no responses."""
    peer: Optional[float] = None
    direct_report: Optional[float] = None
    supervisor: Optional[float] = None
    self: Optional[float] = None
    other: Optional[float] = None
    all_raters: Optional[float] = None


class DimensionReportBase(BaseModel):
    """Fields shared by both dimension report shapes."""
    dimension_id: str
    dimension_name: str
    dimension_code: str = ""
    industry_benchmark: Optional[float] = None
    geonorm: Optional[float] = None
    geonorm_participant_count: int = Field(default=0, ge=0)
    improvement_needed: bool = False

    @model_validator(mode="after")
    def drop_empty_geonorm(self):
        """A norm with no contributing participants is absent, not zero."""
        if self.geonorm_participant_count == 0:
            self.geonorm = None
        return self


class SubdimensionReport(DimensionReportBase):
    """Child dimension shown under its parent in single-rater reports."""
    target_score: float = 0.0
    specific_feedback: list[str] = Field(default_factory=list)
    specific_feedback_ids: list[str] = Field(default_factory=list)


class DimensionReport360(DimensionReportBase):
    """One top-level dimension of a 360 report."""
    overall_score: float = 0.0
    rater_breakdown: RaterBreakdown = Field(default_factory=RaterBreakdown)
    text_feedback: list[str] = Field(default_factory=list)

    @property
    def feedback(self) -> list[str]:
        return self.text_feedback


class DimensionReportLeaderBlocker(DimensionReportBase):
    """One top-level dimension of a single-rater report."""
    target_score: float = 0.0
    specific_feedback: list[str] = Field(default_factory=list)
    specific_feedback_ids: list[str] = Field(default_factory=list)
    subdimensions: list[SubdimensionReport] = Field(default_factory=list)

    @property
    def feedback(self) -> list[str]:
        return self.specific_feedback


class ParticipantResponseSummary(BaseModel):
    completed: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)


class ReportBase(BaseModel):
    """Identity and summary fields shared by both report shapes."""
    schema_version: int = REPORT_SCHEMA_VERSION
    assignment_id: str
    assessment_id: str
    assessment_title: str = "Unknown Assessment"
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    overall_score: float = 0.0
    generated_at: datetime
    presentation: Optional[ReportPresentation] = None


class Report360Data(ReportBase):
    """Multi-rater report about a target."""
    report_type: Literal["360"] = "360"
    target_id: str
    target_name: str = "Unknown"
    target_email: str = ""
    dimensions: list[DimensionReport360] = Field(default_factory=list)
    overall_text_feedback: list[str] = Field(default_factory=list)
    partial: bool = False
    participant_response_summary: Optional[ParticipantResponseSummary] = None


class ReportLeaderBlockerData(ReportBase):
    """Single-rater (leader or blocker) report about the respondent."""
    report_type: Literal["leader_blocker"] = "leader_blocker"
    user_id: str
    user_name: str = "Unknown"
    user_email: str = ""
    is_blocker: bool = False
    dimensions: list[DimensionReportLeaderBlocker] = Field(default_factory=list)
    overall_feedback: list[str] = Field(default_factory=list)
    overall_feedback_ids: list[str] = Field(default_factory=list)


ReportData = Annotated[
    Union[Report360Data, ReportLeaderBlockerData],
    Field(discriminator="report_type"),
]

_report_adapter: TypeAdapter = TypeAdapter(ReportData)


def parse_report(payload: Union[str, bytes, dict]) -> Union[Report360Data, ReportLeaderBlockerData]:
    """Validate a serialized report (JSON text or dict) into its concrete model."""
    if isinstance(payload, (str, bytes)):
        return _report_adapter.validate_json(payload)
    return _report_adapter.validate_python(payload)


class ReportFetchResponse(BaseModel):
    """Result of the report-fetch operation."""
    report: ReportData
    cached: bool

"""Shared cell formatting and column layout for the export renderers."""
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Union

import structlog
from bs4 import BeautifulSoup

from talent_reports.config import Settings
from talent_reports.models.report import (
    Report360Data,
    ReportLeaderBlockerData,
)
from talent_reports.models.template import ReportPresentation

AnyReport = Union[Report360Data, ReportLeaderBlockerData]

NOT_AVAILABLE = "N/A"
NO_DATA = "No data"

_FILENAME_RE = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True)
class ReportDebugContext:
    """Explicit debug switch handed to renderers and the render worker."""

    enabled: bool = False
    logger: Any = field(default_factory=lambda: structlog.get_logger("talent_reports.debug"))

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReportDebugContext":
        return cls(enabled=settings.report_debug)

    def log(self, event: str, **fields: Any) -> None:
        if self.enabled:
            self.logger.info(event, **fields)


DISABLED_DEBUG = ReportDebugContext()


def ensure_report(report: Any) -> AnyReport:
    """Reject anything outside the closed report union."""
    if not isinstance(report, (Report360Data, ReportLeaderBlockerData)):
        raise TypeError(f"Unsupported report type: {type(report).__name__}")
    return report


def presentation_of(report: AnyReport) -> ReportPresentation:
    return report.presentation or ReportPresentation()


def strip_html(text: Optional[str]) -> str:
    """Visible text of a rich-text snippet, entities decoded."""
    if not text:
        return ""
    return BeautifulSoup(text, "html.parser").get_text()


def fmt_score(value: Optional[float]) -> str:
    """Two decimals; a missing score shows as 0.00."""
    return f"{(value or 0):.2f}"


def fmt_optional(value: Optional[float]) -> str:
    """Two decimals, or N/A when the comparison does not exist."""
    return NOT_AVAILABLE if value is None else f"{value:.2f}"


def fmt_geonorm(value: Optional[float], participant_count: int) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.2f} (n={participant_count or 0})"


def yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def join_feedback(items: Iterable[str]) -> str:
    cleaned = [strip_html(item) for item in items if item]
    return " | ".join(cleaned) if cleaned else NOT_AVAILABLE


def fmt_generated_at(report: AnyReport) -> str:
    return report.generated_at.isoformat() if report.generated_at else NOT_AVAILABLE


def export_filename(report: AnyReport, ext: str) -> str:
    """``{title}_{assignment_id[:8]}`` sanitised to ``[a-z0-9_]``, plus the extension."""
    ensure_report(report)
    stem = f"{report.assessment_title}_{report.assignment_id[:8]}"
    return f"{_FILENAME_RE.sub('_', stem).lower()}.{ext}"


# ----------------------------------------------------------------
# Column layout
# ----------------------------------------------------------------

@dataclass
class Column:
    """One breakdown column: header, cell formatter, and the empty-report placeholder."""

    header: str
    value: Callable[[Any], str]
    placeholder: str = NOT_AVAILABLE


def breakdown_columns(report: AnyReport) -> list[Column]:
    """Dimension breakdown columns, honouring the template's components and labels."""
    ensure_report(report)
    p = presentation_of(report)
    c, labels = p.components, p.labels

    columns = [
        Column(labels.dimension_label, lambda d: d.dimension_name, NO_DATA),
        Column("Code", lambda d: d.dimension_code or "", ""),
    ]
    if isinstance(report, Report360Data):
        columns.append(Column(
            "All Raters",
            lambda d: fmt_score(
                d.rater_breakdown.all_raters
                if d.rater_breakdown.all_raters is not None else d.overall_score
            ),
            "0",
        ))
        if c.rater_breakdown:
            columns.extend([
                Column("Peer", lambda d: fmt_optional(d.rater_breakdown.peer)),
                Column("Direct Report", lambda d: fmt_optional(d.rater_breakdown.direct_report)),
                Column("Supervisor", lambda d: fmt_optional(d.rater_breakdown.supervisor)),
                Column("Self", lambda d: fmt_optional(d.rater_breakdown.self)),
                Column("Other", lambda d: fmt_optional(d.rater_breakdown.other)),
            ])
    else:
        columns.append(Column("Your Score", lambda d: fmt_score(d.target_score), "0"))

    if c.benchmarks:
        columns.append(Column(labels.benchmark_label, lambda d: fmt_optional(d.industry_benchmark)))
    if c.geonorms:
        columns.append(Column(
            labels.geonorm_label,
            lambda d: fmt_geonorm(d.geonorm, d.geonorm_participant_count),
        ))
    if c.improvement_indicators:
        columns.append(Column("Improvement Needed", lambda d: yes_no(d.improvement_needed), "No"))
    if isinstance(report, ReportLeaderBlockerData) and c.feedback:
        columns.append(Column(labels.feedback_label, lambda d: join_feedback(d.specific_feedback)))
    return columns


def breakdown_rows(report: AnyReport) -> list[list[str]]:
    """Formatted breakdown cells; one placeholder row when there are no dimensions."""
    columns = breakdown_columns(report)
    if not report.dimensions:
        return [[col.placeholder for col in columns]]
    return [[col.value(d) for col in columns] for d in report.dimensions]


def summary_fields(report: AnyReport, skip_empty_group: bool = False) -> list[tuple[str, str]]:
    """(label, value) pairs of the report header block."""
    ensure_report(report)
    p = presentation_of(report)
    if isinstance(report, Report360Data):
        fields = [
            ("Assessment", report.assessment_title),
            ("Target Name", report.target_name),
            ("Target Email", report.target_email),
            ("Group", report.group_name or ""),
        ]
    else:
        fields = [
            ("Assessment", report.assessment_title),
            ("User Name", report.user_name),
            ("User Email", report.user_email),
            ("Group", report.group_name or NOT_AVAILABLE),
        ]
    if skip_empty_group and not report.group_name:
        fields = [f for f in fields if f[0] != "Group"]
    if p.components.overall_score:
        fields.append((p.labels.overall_score_label, fmt_score(report.overall_score)))
    fields.append(("Generated At", fmt_generated_at(report)))
    return fields


def feedback_rows(report: AnyReport) -> list[tuple[str, str]]:
    """(dimension, text) pairs of a 360 report's harvested comments, markup stripped."""
    if not isinstance(report, Report360Data) or not presentation_of(report).components.feedback:
        return []
    rows = [
        (d.dimension_name, strip_html(text))
        for d in report.dimensions
        for text in d.text_feedback
        if text
    ]
    rows.extend(("Overall", strip_html(text)) for text in report.overall_text_feedback if text)
    return rows


def overall_feedback(report: AnyReport) -> list[str]:
    """A single-rater report's overall feedback, markup stripped."""
    if not isinstance(report, ReportLeaderBlockerData) or not presentation_of(report).components.feedback:
        return []
    return [strip_html(text) for text in report.overall_feedback if text]


def closing_feedback(report: AnyReport) -> list[str]:
    """Closing-page comments: a 360 report's untagged rater comments, else the overall feedback."""
    if isinstance(report, Report360Data):
        if not presentation_of(report).components.feedback:
            return []
        return [strip_html(text) for text in report.overall_text_feedback if text]
    return overall_feedback(report)


def show_breakdown(report: AnyReport) -> bool:
    return presentation_of(report).components.dimension_breakdown

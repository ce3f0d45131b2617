"""Paginated PDF rendering of a report (reportlab platypus)."""
from io import BytesIO
from typing import Any, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from talent_reports.exports.formatting import (
    DISABLED_DEBUG,
    AnyReport,
    ReportDebugContext,
    closing_feedback,
    ensure_report,
    fmt_geonorm,
    fmt_optional,
    fmt_score,
    join_feedback,
    presentation_of,
    show_breakdown,
    strip_html,
    summary_fields,
    yes_no,
)
from talent_reports.models.report import Report360Data

PDF_MEDIA_TYPE = "application/pdf"

_GRID = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
])


def _text(value: Any) -> str:
    return escape(strip_html(str(value)) if value is not None else "")


def _on_page(c, doc):
    c.setFont("Helvetica", 8)
    c.drawRightString(200 * mm, 10 * mm, f"Page {c.getPageNumber()}")


def _summary_block(report: AnyReport, styles) -> List[Any]:
    story: List[Any] = [
        Paragraph(_text(report.assessment_title), styles["Title"]),
        Spacer(1, 10),
    ]
    rows = [["Metric", "Value"]] + [[label, value] for label, value in summary_fields(report)]
    if isinstance(report, Report360Data) and report.participant_response_summary and report.partial:
        counts = report.participant_response_summary
        rows.append(["Responses", f"{counts.completed} of {counts.total}"])
    table = Table(rows, hAlign="LEFT", colWidths=[140, 330])
    table.setStyle(_GRID)
    story.append(table)
    if isinstance(report, Report360Data) and report.partial:
        story.append(Spacer(1, 8))
        story.append(Paragraph(
            "Partial report: not every rater has completed the assessment yet.",
            styles["Italic"],
        ))
    return story


def _dimension_block(report: AnyReport, dim, styles, wrap) -> List[Any]:
    p = presentation_of(report)
    c, labels = p.components, p.labels
    story: List[Any] = [Paragraph(_text(dim.dimension_name), styles["Heading2"])]

    rows: List[List[Any]] = [["Metric", "Value"]]
    if isinstance(report, Report360Data):
        rows.append(["All Raters", fmt_score(dim.overall_score)])
        if c.rater_breakdown:
            b = dim.rater_breakdown
            rows.extend([
                ["Peer", fmt_optional(b.peer)],
                ["Direct Report", fmt_optional(b.direct_report)],
                ["Supervisor", fmt_optional(b.supervisor)],
                ["Self", fmt_optional(b.self)],
                ["Other", fmt_optional(b.other)],
            ])
    else:
        rows.append(["Your Score", fmt_score(dim.target_score)])
    if c.benchmarks:
        rows.append([labels.benchmark_label, fmt_optional(dim.industry_benchmark)])
    if c.geonorms:
        rows.append([labels.geonorm_label, fmt_geonorm(dim.geonorm, dim.geonorm_participant_count)])
    if c.improvement_indicators:
        rows.append(["Improvement Needed", yes_no(dim.improvement_needed)])
    table = Table(rows, hAlign="LEFT", colWidths=[140, 330])
    table.setStyle(_GRID)
    story.append(table)

    subdimensions = getattr(dim, "subdimensions", [])
    if subdimensions:
        story.append(Spacer(1, 8))
        if c.feedback:
            sub_rows = [[labels.dimension_label, "Score", labels.feedback_label]] + [
                [
                    Paragraph(_text(s.dimension_name), wrap),
                    fmt_score(s.target_score),
                    Paragraph(escape(join_feedback(s.specific_feedback)), wrap),
                ]
                for s in subdimensions
            ]
            widths = [170, 70, 230]
        else:
            sub_rows = [[labels.dimension_label, "Score"]] + [
                [Paragraph(_text(s.dimension_name), wrap), fmt_score(s.target_score)]
                for s in subdimensions
            ]
            widths = [300, 170]
        sub_table = Table(sub_rows, hAlign="LEFT", colWidths=widths)
        sub_table.setStyle(_GRID)
        story.append(sub_table)

    if c.feedback and dim.feedback:
        story.append(Spacer(1, 8))
        story.append(Paragraph(f"<b>{escape(labels.feedback_label)}</b>", styles["Normal"]))
        for text in dim.feedback:
            if text:
                story.append(Paragraph(_text(text), wrap))
                story.append(Spacer(1, 4))
    return story


def render_pdf(report: AnyReport, debug: ReportDebugContext = DISABLED_DEBUG) -> bytes:
    """Summary, one page per dimension, then the closing feedback block."""
    ensure_report(report)
    p = presentation_of(report)
    styles = getSampleStyleSheet()
    wrap = ParagraphStyle("wrap", parent=styles["Normal"], fontSize=9, leading=11)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=36,
        rightMargin=36,
        topMargin=36,
        bottomMargin=36,
        title=report.assessment_title,
        author="Talent Report Pipeline",
        invariant=1,
    )

    story: List[Any] = _summary_block(report, styles)
    blocks = 0
    if show_breakdown(report):
        if not report.dimensions:
            story.append(Spacer(1, 14))
            story.append(Paragraph("No dimension data available", styles["Heading2"]))
        for dim in report.dimensions:
            story.append(PageBreak())
            story.extend(_dimension_block(report, dim, styles, wrap))
            blocks += 1

    closing = closing_feedback(report)
    if closing:
        story.append(PageBreak())
        story.append(Paragraph(f"Overall {escape(p.labels.feedback_label)}", styles["Heading2"]))
        for text in closing:
            story.append(Paragraph(escape(text), wrap))
            story.append(Spacer(1, 4))

    doc.build(story, onFirstPage=_on_page, onLaterPages=_on_page)
    content = buffer.getvalue()
    debug.log(
        "pdf_rendered",
        assignment_id=report.assignment_id,
        report_type=report.report_type,
        dimension_blocks=blocks,
        closing_feedback=len(closing),
        size_bytes=len(content),
    )
    return content

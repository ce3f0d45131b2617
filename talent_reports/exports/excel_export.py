"""Spreadsheet (.xlsx) rendering of a report."""
from datetime import datetime, timezone
from io import BytesIO
from zipfile import ZIP_DEFLATED, ZipFile, ZipInfo

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.writer.excel import ExcelWriter

from talent_reports.exports.formatting import (
    DISABLED_DEBUG,
    AnyReport,
    ReportDebugContext,
    breakdown_columns,
    breakdown_rows,
    ensure_report,
    feedback_rows,
    overall_feedback,
    presentation_of,
    show_breakdown,
    summary_fields,
)
from talent_reports.models.report import Report360Data

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_HEADER_FONT = Font(bold=True)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _add_sheet(wb: Workbook, title: str, header: list[str], rows, widths: list[int]):
    ws = wb.create_sheet(title)
    ws.append(header)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
    for row in rows:
        ws.append(list(row))
    for index, width in enumerate(widths):
        ws.column_dimensions[get_column_letter(index + 1)].width = width
    return ws


def _save(wb: Workbook, stamp: datetime) -> bytes:
    """Serialize with every timestamp pinned so equal reports give equal bytes."""
    wb.properties.created = stamp
    wb.properties.modified = stamp

    raw = BytesIO()
    archive = ZipFile(raw, "w", ZIP_DEFLATED, allowZip64=True)
    ExcelWriter(wb, archive).save()

    pinned = BytesIO()
    date_time = stamp.timetuple()[:6]
    with ZipFile(BytesIO(raw.getvalue())) as src, ZipFile(pinned, "w", ZIP_DEFLATED) as dst:
        for info in src.infolist():
            entry = ZipInfo(info.filename, date_time=date_time)
            entry.compress_type = ZIP_DEFLATED
            dst.writestr(entry, src.read(info.filename))
    return pinned.getvalue()


def render_xlsx(report: AnyReport, debug: ReportDebugContext = DISABLED_DEBUG) -> bytes:
    """Summary, Dimension Breakdown and feedback sheets."""
    ensure_report(report)
    labels = presentation_of(report).labels

    wb = Workbook()
    wb.remove(wb.active)

    summary = summary_fields(report, skip_empty_group=not isinstance(report, Report360Data))
    if isinstance(report, Report360Data) and report.partial and report.participant_response_summary:
        counts = report.participant_response_summary
        summary.append(("Responses", f"{counts.completed} of {counts.total}"))
    _add_sheet(wb, "Summary", ["Metric", "Value"], summary, [30, 30])

    rows: list[list[str]] = []
    if show_breakdown(report):
        columns = breakdown_columns(report)
        rows = breakdown_rows(report)
        _add_sheet(
            wb,
            "Dimension Breakdown",
            [col.header for col in columns],
            rows,
            [30, 15] + [18] * (len(columns) - 2),
        )

    if isinstance(report, Report360Data):
        _add_sheet(
            wb,
            "Feedback",
            [labels.dimension_label, labels.feedback_label],
            feedback_rows(report),
            [30, 80],
        )
    else:
        closing = overall_feedback(report)
        if closing:
            _add_sheet(
                wb,
                "Overall Feedback",
                [labels.feedback_label],
                ([text] for text in closing),
                [80],
            )

    content = _save(wb, _naive_utc(report.generated_at))
    debug.log(
        "xlsx_rendered",
        assignment_id=report.assignment_id,
        report_type=report.report_type,
        sheets=len(wb.sheetnames),
        breakdown_rows=len(rows),
        size_bytes=len(content),
    )
    return content

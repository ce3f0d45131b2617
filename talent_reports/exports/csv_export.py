"""CSV rendering of a report."""
import csv
import io

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


def render_csv(report: AnyReport, debug: ReportDebugContext = DISABLED_DEBUG) -> str:
    """Summary block, dimension breakdown, then the feedback section when there is any."""
    ensure_report(report)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")

    summary = summary_fields(report)
    writer.writerow([label for label, _ in summary])
    writer.writerow([value for _, value in summary])

    rows: list[list[str]] = []
    if show_breakdown(report):
        writer.writerow([])
        writer.writerow([col.header for col in breakdown_columns(report)])
        rows = breakdown_rows(report)
        writer.writerows(rows)

    comments = feedback_rows(report)
    if comments:
        writer.writerow([])
        labels = presentation_of(report).labels
        writer.writerow([labels.dimension_label, labels.feedback_label])
        writer.writerows(comments)

    closing = overall_feedback(report)
    if closing:
        writer.writerow([])
        writer.writerow([f"Overall {presentation_of(report).labels.feedback_label}"])
        writer.writerows([text] for text in closing)

    debug.log(
        "csv_rendered",
        assignment_id=report.assignment_id,
        report_type=report.report_type,
        breakdown_rows=len(rows),
        feedback_rows=len(comments) + len(closing),
    )
    # csv.writer terminates every row; drop the final newline
    return buffer.getvalue().rstrip("\n")

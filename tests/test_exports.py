"""Tests for the CSV, spreadsheet and PDF renderers."""
import csv
import io
import pytest
from unittest.mock import MagicMock

from openpyxl import load_workbook

from talent_reports.exports import (
    ReportDebugContext,
    export_filename,
    render_csv,
    render_pdf,
    render_xlsx,
    strip_html,
)
from talent_reports.models import ReportTemplate
from talent_reports.reports.templates import apply_template


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


def _template(**components):
    return ReportTemplate(
        id="tpl", assessment_id="s1", components=components, labels={"feedback_label": "Notes"},
    )


class TestCsv:
    """CSV layout."""

    def test_leader_layout(self, report_leader):
        rows = _rows(render_csv(report_leader))

        assert rows[0] == ["Assessment", "User Name", "User Email", "Group", "Overall Score", "Generated At"]
        assert rows[1][:5] == ["Leader Check", "Sam Roe", "sam@example.com", "N/A", "4.00"]
        assert rows[2] == []
        assert rows[3] == [
            "Dimension", "Code", "Your Score", "Industry Benchmark", "Group Norm",
            "Improvement Needed", "Feedback",
        ]
        assert rows[4] == ["Strategy", "STR", "4.00", "3.00", "N/A", "No", "Think long term"]
        assert rows[-2:] == [["Overall Feedback"], ["Strong overall"]]

    def test_360_layout(self, report_360):
        rows = _rows(render_csv(report_360))

        assert rows[3] == [
            "Dimension", "Code", "All Raters", "Peer", "Direct Report", "Supervisor", "Self",
            "Other", "Industry Benchmark", "Group Norm", "Improvement Needed",
        ]
        assert rows[4] == [
            "Communication", "COM", "3.50", "3.00", "N/A", "4.00", "N/A", "N/A",
            "3.80", "3.60 (n=4)", "Yes",
        ]
        assert ["Communication", "Listens well"] in rows
        assert ["Overall", "Great teammate"] in rows

    def test_empty_report_has_placeholder_row(self, empty_leader_report):
        rows = _rows(render_csv(empty_leader_report))
        assert rows[4] == ["No data", "", "0", "N/A", "N/A", "No", "N/A"]

    def test_disabled_components_drop_columns(self, report_360):
        templated = apply_template(report_360, _template(benchmarks=False, rater_breakdown=False))
        header = _rows(render_csv(templated))[3]
        assert "Industry Benchmark" not in header
        assert "Peer" not in header
        assert ["Dimension", "Notes"] in _rows(render_csv(templated))

    def test_no_trailing_newline(self, report_leader):
        assert not render_csv(report_leader).endswith("\n")

    def test_rejects_unknown_report(self):
        with pytest.raises(TypeError):
            render_csv({"report_type": "other"})


class TestXlsx:
    """Spreadsheet layout."""

    def test_sheets_and_cells(self, report_leader):
        wb = load_workbook(io.BytesIO(render_xlsx(report_leader)))

        assert wb.sheetnames == ["Summary", "Dimension Breakdown", "Overall Feedback"]
        summary = [tuple(r) for r in wb["Summary"].iter_rows(values_only=True)]
        assert summary[0] == ("Metric", "Value")
        assert ("Group", "N/A") not in summary
        breakdown = list(wb["Dimension Breakdown"].iter_rows(values_only=True))
        assert breakdown[1][:3] == ("Strategy", "STR", "4.00")

    def test_360_has_feedback_sheet(self, report_360):
        wb = load_workbook(io.BytesIO(render_xlsx(report_360)))
        assert "Feedback" in wb.sheetnames
        rows = list(wb["Feedback"].iter_rows(values_only=True))
        assert ("Communication", "Listens well") in rows

    def test_empty_report_is_non_empty_file(self, empty_leader_report):
        content = render_xlsx(empty_leader_report)
        assert len(content) > 0
        wb = load_workbook(io.BytesIO(content))
        assert list(wb["Dimension Breakdown"].iter_rows(values_only=True))[1][0] == "No data"

    def test_same_report_same_bytes(self, report_360):
        assert render_xlsx(report_360) == render_xlsx(report_360)


class TestPdf:
    """Paginated PDF export."""

    def test_renders_pdf(self, report_360):
        content = render_pdf(report_360)
        assert content.startswith(b"%PDF")

    def test_empty_report_renders(self, empty_leader_report):
        assert render_pdf(empty_leader_report).startswith(b"%PDF")

    def test_same_report_same_bytes(self, report_leader):
        assert render_pdf(report_leader) == render_pdf(report_leader)

    def test_debug_context_logs(self, report_leader):
        logger = MagicMock()
        render_pdf(report_leader, ReportDebugContext(enabled=True, logger=logger))
        event = logger.info.call_args[0][0]
        assert event == "pdf_rendered"


class TestHelpers:
    def test_filename_is_sanitised(self, report_leader):
        name = export_filename(report_leader, "csv")
        assert name == f"leader_check_{report_leader.assignment_id[:8]}.csv"

    def test_strip_html(self):
        assert strip_html("<p>Hi <b>there</b></p>") == "Hi there"
        assert strip_html(None) == ""
        assert strip_html("<b>Q&amp;A &lt;skill&gt;</b>") == "Q&A <skill>"


class TestRichTextFeedback:
    """Stored rich text reaches every format as plain text."""

    @pytest.fixture
    def rich_leader(self, report_leader):
        return report_leader.model_copy(update={
            "dimensions": [
                report_leader.dimensions[0].model_copy(
                    update={"specific_feedback": ["<b>Q&amp;A &lt;skill&gt;</b>"]}
                ),
            ],
            "overall_feedback": ["<p>Great &amp; reliable</p>"],
        })

    def test_csv_decodes_entities(self, rich_leader):
        text = render_csv(rich_leader)
        assert "&amp;" not in text
        assert "&lt;" not in text
        rows = _rows(text)
        assert rows[4][-1] == "Q&A <skill>"
        assert rows[-1] == ["Great & reliable"]

    def test_xlsx_decodes_entities(self, rich_leader):
        wb = load_workbook(io.BytesIO(render_xlsx(rich_leader)))
        cells = [c for row in wb["Dimension Breakdown"].iter_rows(values_only=True) for c in row]
        assert "Q&A <skill>" in cells

    def test_pdf_renders(self, rich_leader):
        assert render_pdf(rich_leader).startswith(b"%PDF")


class TestEmpty360:
    """A 360 report with no dimensions still renders in every format."""

    def test_csv_placeholder_row(self, empty_360_report):
        rows = _rows(render_csv(empty_360_report))
        assert rows[3][:3] == ["Dimension", "Code", "All Raters"]
        assert rows[4][:3] == ["No data", "", "0"]

    def test_xlsx(self, empty_360_report):
        wb = load_workbook(io.BytesIO(render_xlsx(empty_360_report)))
        breakdown = list(wb["Dimension Breakdown"].iter_rows(values_only=True))
        assert breakdown[1][0] == "No data"

    def test_pdf(self, empty_360_report):
        assert render_pdf(empty_360_report).startswith(b"%PDF")

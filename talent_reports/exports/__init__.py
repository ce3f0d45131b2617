"""Export renderers: CSV, spreadsheet and paginated PDF."""
from talent_reports.exports.formatting import ReportDebugContext, export_filename, strip_html
from talent_reports.exports.csv_export import render_csv
from talent_reports.exports.excel_export import XLSX_MEDIA_TYPE, render_xlsx
from talent_reports.exports.pdf_export import PDF_MEDIA_TYPE, render_pdf

__all__ = [
    "ReportDebugContext",
    "export_filename",
    "strip_html",
    "render_csv",
    "render_xlsx",
    "render_pdf",
    "XLSX_MEDIA_TYPE",
    "PDF_MEDIA_TYPE",
]

#!/usr/bin/env python
"""
Generate one or more assignment reports and write them to disk.

Recomputes each report (refreshing the dimension-score cache first), stores
it in report_data, then writes the requested export formats to ``reports/``.

Usage:
    python scripts/generate_report.py <assignment_id> [<assignment_id> ...]
    python scripts/generate_report.py <assignment_id> --format csv --format pdf
    python scripts/generate_report.py <assignment_id> --assign-feedback
"""

import argparse
import logging
import sys
from pathlib import Path

import structlog

_project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_project_root))

from dotenv import load_dotenv
load_dotenv(_project_root / ".env")

from talent_reports.config import get_settings
from talent_reports.exports import (
    ReportDebugContext,
    export_filename,
    render_csv,
    render_pdf,
    render_xlsx,
)
from talent_reports.reports import ReportError, ReportService
from talent_reports.services.redis_cache import get_redis_cache
from talent_reports.services.snowflake import SnowflakeService

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s %(name)s %(message)s",
    stream=sys.stdout,
)
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)
log = structlog.get_logger("generate_report")

RENDERERS = {
    "csv": render_csv,
    "xlsx": render_xlsx,
    "pdf": render_pdf,
}


def _write(path: Path, content) -> None:
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate and export assignment reports")
    parser.add_argument("assignment_ids", nargs="+")
    parser.add_argument(
        "--format",
        dest="formats",
        action="append",
        choices=sorted(RENDERERS),
        help="Export format (repeatable). Defaults to all.",
    )
    parser.add_argument("--assign-feedback", action="store_true", help="Re-select feedback first")
    parser.add_argument("--out", default=str(_project_root / "reports"), help="Output directory")
    args = parser.parse_args()

    formats = args.formats or sorted(RENDERERS)
    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)

    db = SnowflakeService()
    service = ReportService(db, get_redis_cache())
    debug = ReportDebugContext.from_settings(get_settings())

    failures = 0
    try:
        for assignment_id in args.assignment_ids:
            try:
                if args.assign_feedback:
                    service.assign_feedback(assignment_id)
                report = service.generate(assignment_id)
            except ReportError as e:
                log.error("report_failed", assignment_id=assignment_id, error=str(e))
                failures += 1
                continue

            for fmt in formats:
                path = out_dir / export_filename(report, fmt)
                _write(path, RENDERERS[fmt](report, debug))
                log.info("report_exported", assignment_id=assignment_id, path=str(path))
    finally:
        db.disconnect()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())

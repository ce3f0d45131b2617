"""Background PDF render worker.

Polls ``report_data`` for the oldest queued job, claims it with one
conditional update, renders the print view in a headless browser, uploads
the artifact and records the outcome. One job at a time; no retries.

Usage:
    python -m talent_reports.rendering.worker --loop
    python -m talent_reports.rendering.worker --once
"""
import argparse
import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import structlog
from dotenv import load_dotenv

from talent_reports.config import Settings, get_settings
from talent_reports.exports.formatting import ReportDebugContext
from talent_reports.exports.pdf_export import PDF_MEDIA_TYPE
from talent_reports.models.render_job import RenderJob
from talent_reports.rendering.browser import BrowserRenderer, RenderTimings
from talent_reports.rendering.errors import RenderError
from talent_reports.services.redis_cache import RedisCache, get_redis_cache
from talent_reports.services.s3_storage import S3Storage, get_s3_storage
from talent_reports.services.snowflake import SnowflakeService, get_snowflake_service

logger = structlog.get_logger(__name__)


class RenderWorker:
    """Single-process render job processor."""

    def __init__(
        self,
        db: SnowflakeService,
        storage: S3Storage,
        cache: RedisCache,
        renderer: BrowserRenderer,
        settings: Optional[Settings] = None,
        debug: Optional[ReportDebugContext] = None,
    ):
        self.db = db
        self.storage = storage
        self.cache = cache
        self.renderer = renderer
        self.settings = settings or get_settings()
        self.debug = debug or ReportDebugContext.from_settings(self.settings)

    def view_url(self, assignment_id: str, token: str) -> str:
        base = self.settings.app_url.rstrip("/")
        return f"{base}/reports/{assignment_id}/view?service_role_token={quote(token, safe='')}"

    def storage_key(self, assignment_id: str, version: int) -> str:
        return f"{self.settings.render_storage_prefix}{assignment_id}/v{version}.pdf"

    async def poll_once(self) -> Optional[str]:
        """Claim and process at most one job; returns its assignment id."""
        try:
            row = self.db.next_queued_render()
        except Exception:
            logger.exception("render_poll_failed")
            return None
        if not row:
            return None

        job = RenderJob(
            assignment_id=row["assignment_id"],
            current_version=int(row.get("pdf_version") or 0),
            job_id=row.get("pdf_job_id"),
        )
        try:
            claimed = self.db.claim_render(job.assignment_id, job.job_id)
        except Exception:
            logger.exception("render_claim_failed", assignment_id=job.assignment_id)
            return None
        if not claimed:
            logger.info("render_claim_lost", assignment_id=job.assignment_id)
            return None

        await self.process(job)
        return job.assignment_id

    async def process(self, job: RenderJob) -> bool:
        """Render, upload and record one claimed job; any failure marks it failed."""
        assignment_id = job.assignment_id
        version = job.next_version
        logger.info("render_started", assignment_id=assignment_id, job_id=job.job_id, version=version)
        try:
            token = self.cache.issue_token(assignment_id, self.settings.render_token_ttl_seconds)
            if not token:
                raise RenderError("Could not issue print-view token")
            self.debug.log("render_token_issued", assignment_id=assignment_id)

            pdf = await self.renderer.render(self.view_url(assignment_id, token))

            key = self.storage_key(assignment_id, version)
            self.storage.upload_document(
                key,
                pdf,
                content_type=PDF_MEDIA_TYPE,
                metadata={"assignment_id": assignment_id, "version": version},
                overwrite=True,
            )
            recorded = self.db.complete_render(assignment_id, job.job_id, key, version)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error("render_failed", assignment_id=assignment_id, error=message)
            try:
                if not self.db.fail_render(assignment_id, job.job_id, message):
                    logger.warning("render_superseded", assignment_id=assignment_id, job_id=job.job_id)
            except Exception:
                logger.exception("render_fail_record_failed", assignment_id=assignment_id)
            return False

        if not recorded:
            logger.warning("render_superseded", assignment_id=assignment_id, job_id=job.job_id)
            return False
        logger.info("render_completed", assignment_id=assignment_id, storage_path=key, version=version)
        return True

    async def run(self, loop: bool = True, sleep_seconds: Optional[float] = None) -> int:
        interval = sleep_seconds if sleep_seconds is not None else self.settings.render_poll_interval_seconds
        logger.info("render_worker_started", loop=loop, interval=interval)
        while True:
            await self.poll_once()
            if not loop:
                return 0
            await asyncio.sleep(interval)


def build_worker(settings: Optional[Settings] = None) -> RenderWorker:
    settings = settings or get_settings()
    debug = ReportDebugContext.from_settings(settings)
    return RenderWorker(
        db=get_snowflake_service(),
        storage=get_s3_storage(),
        cache=get_redis_cache(),
        renderer=BrowserRenderer(RenderTimings.from_settings(settings), debug=debug),
        settings=settings,
        debug=debug,
    )


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format="%(message)s")
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="PDF render worker")
    parser.add_argument("--once", action="store_true", help="Process a single poll and exit")
    parser.add_argument("--loop", action="store_true", help="Run continuously")
    parser.add_argument("--sleep", type=float, default=None, help="Seconds between polls when looping")
    args = parser.parse_args()

    load_dotenv()
    settings = get_settings()
    _configure_logging(settings.log_level)

    loop_mode = args.loop and not args.once
    worker = build_worker(settings)
    try:
        return asyncio.run(worker.run(loop=loop_mode, sleep_seconds=args.sleep))
    finally:
        worker.db.disconnect()


if __name__ == "__main__":
    raise SystemExit(main())

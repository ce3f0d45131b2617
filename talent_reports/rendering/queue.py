"""PDF render job queue over ``report_data.pdf_*`` columns."""
import logging
from typing import Iterable, Optional
from uuid import uuid4

from talent_reports.config import get_settings
from talent_reports.models.enums import (
    RENDER_SKIP_STATUSES,
    VALID_RENDER_TRANSITIONS,
    RenderStatus,
)
from talent_reports.models.render_job import EnqueueResult, RenderJobStatus, SignedUrlResponse
from talent_reports.rendering.errors import RenderError, RenderNotReadyError
from talent_reports.reports.errors import AssignmentNotCompletedError, AssignmentNotFoundError
from talent_reports.services.s3_storage import S3Storage
from talent_reports.services.snowflake import SnowflakeService

logger = logging.getLogger(__name__)


def sources_for(target: RenderStatus) -> list[str]:
    """Statuses allowed to move to ``target``."""
    return [s.value for s, nexts in VALID_RENDER_TRANSITIONS.items() if target in nexts]


def request_sources() -> list[str]:
    """Statuses a plain render request may queue from."""
    return [
        s for s in sources_for(RenderStatus.QUEUED)
        if RenderStatus(s) not in RENDER_SKIP_STATUSES
    ]


def _status(row: Optional[dict]) -> RenderStatus:
    return RenderStatus((row or {}).get("pdf_status") or RenderStatus.NOT_REQUESTED.value)


def dedupe(ids: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(i for i in ids if i))


class RenderQueue:
    """Enqueue, status and artifact access for render jobs."""

    def __init__(self, db: SnowflakeService, storage: Optional[S3Storage] = None):
        self.db = db
        self.storage = storage
        self.settings = get_settings()

    def _queue(self, assignment_id: str, from_statuses: list[str]) -> bool:
        self.db.ensure_report_row(assignment_id)
        job_id = str(uuid4())
        moved = self.db.queue_render(assignment_id, job_id, from_statuses) == 1
        if moved:
            logger.info(f"Queued PDF render for {assignment_id} (job {job_id})")
        return moved

    def enqueue(self, assignment_ids: list[str]) -> EnqueueResult:
        """Queue a batch; already queued, generating or ready rows are skipped."""
        ids = dedupe(assignment_ids)
        limit = self.settings.enqueue_batch_limit
        if not ids or len(ids) > limit:
            raise ValueError(f"Between 1 and {limit} assignment ids are required")

        assignments = {a["id"]: a for a in self.db.get_assignments(ids)}
        statuses = {r["assignment_id"]: _status(r) for r in self.db.get_report_rows(ids)}

        result = EnqueueResult()
        for assignment_id in ids:
            assignment = assignments.get(assignment_id)
            if not assignment:
                result.errors.append(f"{assignment_id[:8]}: not found")
                continue
            if not assignment.get("completed"):
                result.errors.append(f"{assignment_id[:8]}: assignment not completed")
                continue
            if statuses.get(assignment_id, RenderStatus.NOT_REQUESTED) in RENDER_SKIP_STATUSES:
                result.skipped += 1
                continue
            if self._queue(assignment_id, request_sources()):
                result.queued += 1
            else:
                result.skipped += 1

        logger.info(
            f"Enqueue: {result.queued} queued, {result.skipped} skipped, {len(result.errors)} errors"
        )
        return result

    def _completed(self, assignment_id: str) -> None:
        assignment = self.db.get_assignment(assignment_id)
        if not assignment:
            raise AssignmentNotFoundError()
        if not assignment.get("completed"):
            raise AssignmentNotCompletedError()

    def request_render(self, assignment_id: str) -> RenderJobStatus:
        """Idempotent single request; returns the resulting status."""
        self._completed(assignment_id)
        current = _status(self.db.get_report_row(assignment_id))
        if current not in RENDER_SKIP_STATUSES:
            self._queue(assignment_id, request_sources())
        return self.get_status(assignment_id)

    def regenerate(self, assignment_id: str) -> RenderJobStatus:
        """Re-enqueue from any status that may move to queued (ready, failed, stuck generating)."""
        self._completed(assignment_id)
        self._queue(assignment_id, sources_for(RenderStatus.QUEUED))
        return self.get_status(assignment_id)

    def get_status(self, assignment_id: str) -> RenderJobStatus:
        return RenderJobStatus.from_row(self.db.get_report_row(assignment_id))

    def signed_url(self, assignment_id: str) -> SignedUrlResponse:
        """Time-limited download URL of the latest ready artifact."""
        status = self.get_status(assignment_id)
        if status.status != RenderStatus.READY or not status.storage_path:
            raise RenderNotReadyError("PDF not ready")
        if self.storage is None:
            raise RenderError("Storage is not configured")
        ttl = self.settings.render_signed_url_ttl
        url = self.storage.generate_presigned_url(status.storage_path, expiration=ttl)
        if not url:
            raise RenderError("Could not sign artifact URL")
        return SignedUrlResponse(url=url, expires_in=ttl)

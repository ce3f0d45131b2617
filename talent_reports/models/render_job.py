"""Render job (PDF artifact) models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import RenderStatus


class RenderJobStatus(BaseModel):
    """State-machine fields of one assignment's render job."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: RenderStatus = RenderStatus.NOT_REQUESTED
    version: Optional[int] = None
    generated_at: Optional[datetime] = None
    storage_path: Optional[str] = None
    last_error: Optional[str] = None
    job_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Optional[dict]) -> "RenderJobStatus":
        """Build from a report_data row; a missing row means not_requested."""
        if not row:
            return cls()
        return cls(
            status=RenderStatus(row.get("pdf_status") or RenderStatus.NOT_REQUESTED.value),
            version=row.get("pdf_version") or None,
            generated_at=row.get("pdf_generated_at"),
            storage_path=row.get("pdf_storage_path"),
            last_error=row.get("pdf_last_error"),
            job_id=row.get("pdf_job_id"),
        )


class EnqueueRequest(BaseModel):
    """Batch render request."""
    assignment_ids: list[str] = Field(..., min_length=1, max_length=100)


class EnqueueResult(BaseModel):
    """Outcome of a batch render request."""
    queued: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)


class SignedUrlResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    expires_in: int


class RenderJob(BaseModel):
    """A claimed queue row handed to the worker."""
    assignment_id: str
    current_version: int = 0
    job_id: Optional[str] = None

    @property
    def next_version(self) -> int:
        return self.current_version + 1

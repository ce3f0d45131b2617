"""ReportData ORM model."""
from sqlalchemy import String, Integer, Float, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from snowflake.sqlalchemy import VARIANT
from typing import Optional
from datetime import datetime
import uuid

from talent_reports.database.base import Base


class ReportData(Base):
    """Cached report per assignment, plus its PDF render job state."""
    __tablename__ = "report_data"

    # Primary key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )

    # Report cache
    assignment_id: Mapped[str] = mapped_column(String(36), unique=True)
    overall_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    dimension_scores: Mapped[Optional[dict]] = mapped_column(VARIANT, nullable=True)
    feedback_assigned: Mapped[Optional[list]] = mapped_column(VARIANT, nullable=True)
    calculated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )

    # Render job
    pdf_status: Mapped[str] = mapped_column(String(20), default="not_requested")
    pdf_storage_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    pdf_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    pdf_version: Mapped[int] = mapped_column(Integer, default=0)
    pdf_last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pdf_job_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Note: Snowflake doesn't support CHECK constraints
    # pdf_status values are validated by RenderStatus

    def __repr__(self):
        return f"<ReportData(assignment_id={self.assignment_id}, pdf_status={self.pdf_status})>"

"""FeedbackLibrary ORM model."""
from sqlalchemy import String, Integer, Float, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from datetime import datetime
import uuid

from talent_reports.database.base import Base


class FeedbackLibrary(Base):
    """Score-ranged narrative feedback for an assessment."""
    __tablename__ = "feedback_library"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    assessment_id: Mapped[str] = mapped_column(String(36), index=True)
    # NULL for overall feedback
    dimension_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    type: Mapped[str] = mapped_column(String(20))
    feedback: Mapped[str] = mapped_column(Text)
    min_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    max_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )

    def __repr__(self):
        return f"<FeedbackLibrary(id={self.id}, type={self.type}, dimension_id={self.dimension_id})>"

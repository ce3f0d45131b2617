"""AssignmentDimensionScore ORM model."""
from sqlalchemy import String, Integer, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime

from talent_reports.database.base import Base


class AssignmentDimensionScore(Base):
    """Per-assignment dimension averages, refreshed by the scoring procedure."""
    __tablename__ = "assignment_dimension_scores"

    assignment_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    dimension_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    avg_score: Mapped[float] = mapped_column(Float)
    answer_count: Mapped[int] = mapped_column(Integer, default=0)
    calculated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )

    def __repr__(self):
        return (
            f"<AssignmentDimensionScore(assignment_id={self.assignment_id}, "
            f"dimension_id={self.dimension_id}, avg_score={self.avg_score})>"
        )

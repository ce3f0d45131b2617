"""ReportTemplate ORM model."""
from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from snowflake.sqlalchemy import VARIANT
from typing import Optional
from datetime import datetime
import uuid

from talent_reports.database.base import Base


class ReportTemplate(Base):
    """Presentation template: component toggles, labels and opaque styling."""
    __tablename__ = "report_templates"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    assessment_id: Mapped[str] = mapped_column(String(36), index=True)
    name: Mapped[str] = mapped_column(String(255))
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    components: Mapped[Optional[dict]] = mapped_column(VARIANT, nullable=True)
    labels: Mapped[Optional[dict]] = mapped_column(VARIANT, nullable=True)
    styling: Mapped[Optional[dict]] = mapped_column(VARIANT, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow
    )

    def __repr__(self):
        return f"<ReportTemplate(id={self.id}, name={self.name}, is_default={self.is_default})>"

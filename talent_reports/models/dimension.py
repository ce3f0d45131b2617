"""Dimension and cached score models."""
from typing import Optional
from pydantic import BaseModel, Field


class Dimension(BaseModel):
    """A scoring category of an assessment; at most one level of nesting."""
    id: str
    assessment_id: str
    name: str
    code: str = ""
    parent_id: Optional[str] = None

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None


class DimensionScoreRow(BaseModel):
    """Cached per-assignment dimension average (assignment_dimension_scores)."""
    assignment_id: str
    dimension_id: str
    avg_score: float = 0.0
    answer_count: int = Field(default=0, ge=0)

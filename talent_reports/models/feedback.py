"""Feedback library and assignment models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from .enums import FeedbackType


class FeedbackEntry(BaseModel):
    """A feedback_library row with an optional inclusive score range."""
    id: str
    assessment_id: str
    dimension_id: Optional[str] = None
    type: FeedbackType
    feedback: str
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    sort_order: int = 0
    created_at: Optional[datetime] = None

    def matches(self, score: float) -> bool:
        """True when score falls inside [min_score, max_score]; a null bound is open."""
        if self.min_score is not None and score < self.min_score:
            return False
        if self.max_score is not None and score > self.max_score:
            return False
        return True


class FeedbackAssignment(BaseModel):
    """One feedback item attached to an assignment's report."""
    dimension_id: Optional[str] = None
    feedback_id: Optional[str] = None
    feedback_content: str
    type: FeedbackType

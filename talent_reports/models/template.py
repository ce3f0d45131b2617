"""Report template and presentation models."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class TemplateComponents(BaseModel):
    """Toggleable report sections; anything not stored is enabled."""
    model_config = ConfigDict(extra="ignore")

    dimension_breakdown: bool = True
    overall_score: bool = True
    benchmarks: bool = True
    geonorms: bool = True
    feedback: bool = True
    improvement_indicators: bool = True
    rater_breakdown: bool = True


class TemplateLabels(BaseModel):
    """Section and column names used by the renderers."""
    model_config = ConfigDict(extra="ignore")

    overall_score_label: str = "Overall Score"
    dimension_label: str = "Dimension"
    benchmark_label: str = "Industry Benchmark"
    geonorm_label: str = "Group Norm"
    feedback_label: str = "Feedback"


class ReportTemplate(BaseModel):
    """Stored presentation template for an assessment."""
    id: str
    assessment_id: str
    name: str = "Default"
    is_default: bool = False
    components: dict[str, bool] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)
    styling: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class ReportPresentation(BaseModel):
    """Template outcome attached to a report copy for rendering."""
    template_id: Optional[str] = None
    components: TemplateComponents = Field(default_factory=TemplateComponents)
    labels: TemplateLabels = Field(default_factory=TemplateLabels)
    styling: dict[str, Any] = Field(default_factory=dict)

"""Report template lookup and application."""
import logging
from typing import Optional, TypeVar

from talent_reports.config import get_settings
from talent_reports.models.report import Report360Data, ReportLeaderBlockerData
from talent_reports.models.template import (
    ReportPresentation,
    ReportTemplate,
    TemplateComponents,
    TemplateLabels,
)
from talent_reports.services.redis_cache import CacheKeys, RedisCache
from talent_reports.services.snowflake import SnowflakeService

logger = logging.getLogger(__name__)

R = TypeVar("R", Report360Data, ReportLeaderBlockerData)


def presentation_for(template: Optional[ReportTemplate]) -> ReportPresentation:
    """Merge stored components and labels over the defaults."""
    if template is None:
        return ReportPresentation()
    defaults = TemplateComponents().model_dump()
    labels = TemplateLabels().model_dump()
    return ReportPresentation(
        template_id=template.id,
        components=TemplateComponents(**{**defaults, **template.components}),
        labels=TemplateLabels(**{**labels, **{k: v for k, v in template.labels.items() if v}}),
        styling=dict(template.styling),
    )


def apply_template(report: R, template: Optional[ReportTemplate]) -> R:
    """Return a copy of the report carrying the template's presentation.

    The input report is never modified. Without a template the report is
    returned as is and renders with the default layout.
    """
    if template is None:
        return report
    templated = report.model_copy(deep=True)
    templated.presentation = presentation_for(template)
    return templated


def load_template(
    db: SnowflakeService,
    cache: Optional[RedisCache],
    assessment_id: str,
) -> Optional[ReportTemplate]:
    """The assessment's default template (else its newest), cached in Redis."""
    cache_key = CacheKeys.template(assessment_id)
    if cache is not None:
        cached = cache.get(cache_key, ReportTemplate)
        if cached:
            return cached

    row = db.get_report_template(assessment_id)
    if not row:
        return None

    template = ReportTemplate(**row)
    if cache is not None:
        cache.set(cache_key, template, get_settings().cache_ttl_template)
    logger.debug(f"Loaded report template {template.id} for assessment {assessment_id}")
    return template

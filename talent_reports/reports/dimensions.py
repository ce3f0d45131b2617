"""Dimension tree resolution for an assessment."""
from typing import Optional

from talent_reports.models.dimension import Dimension
from talent_reports.services.snowflake import SnowflakeService


def resolve_dimensions(db: SnowflakeService, assessment_id: str) -> list[Dimension]:
    """All dimensions of an assessment ordered by name; empty when none are configured."""
    return [
        Dimension(**{**row, "code": row.get("code") or ""})
        for row in db.get_dimensions(assessment_id)
    ]


def top_level(dimensions: list[Dimension]) -> list[Dimension]:
    """Root dimensions ordered by name."""
    return sorted((d for d in dimensions if d.is_top_level), key=lambda d: d.name)


def children_of(dimensions: list[Dimension], parent_id: Optional[str]) -> list[Dimension]:
    return sorted((d for d in dimensions if d.parent_id == parent_id and parent_id is not None), key=lambda d: d.name)

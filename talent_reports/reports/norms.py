"""Industry benchmarks and group norms (GEOnorms)."""
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

import structlog

from talent_reports.models.dimension import DimensionScoreRow
from talent_reports.reports.aggregator import load_score_rows
from talent_reports.services.snowflake import SnowflakeService

logger = structlog.get_logger(__name__)


@dataclass
class GroupNorm:
    """Mean score of a group's other participants on one dimension."""

    dimension_id: str
    avg_score: float
    participant_count: int


def benchmark_map(
    db: SnowflakeService,
    dimension_ids: list[str],
    industry_id: Optional[str],
) -> dict[str, float]:
    """dimension_id -> curated benchmark for the subject's industry."""
    if not industry_id:
        return {}
    return {
        row["dimension_id"]: float(row["value"])
        for row in db.get_benchmarks(dimension_ids, industry_id)
        if row.get("value") is not None
    }


def compute_geonorms(
    rows: list[DimensionScoreRow],
    dimension_ids: list[str],
) -> dict[str, GroupNorm]:
    """Average the contributing rows per dimension; dimensions with none are absent."""
    wanted = set(dimension_ids)
    scores: dict[str, list[float]] = defaultdict(list)
    for row in rows:
        if row.dimension_id in wanted:
            scores[row.dimension_id].append(row.avg_score)
    return {
        dimension_id: GroupNorm(
            dimension_id=dimension_id,
            avg_score=sum(values) / len(values),
            participant_count=len(values),
        )
        for dimension_id, values in scores.items()
    }


def calculate_geonorms(
    db: SnowflakeService,
    group_id: Optional[str],
    assessment_id: str,
    dimension_ids: list[str],
    exclude_user_id: Optional[str] = None,
    exclude_target_id: Optional[str] = None,
) -> dict[str, GroupNorm]:
    """GEOnorms from the group's completed assignments, minus the subject's own.

    Single-rater reports pass ``exclude_user_id`` (assignments the subject
    took); 360 reports pass ``exclude_target_id`` (assignments about the
    subject).
    """
    if not group_id or not dimension_ids:
        return {}

    member_ids = [m["profile_id"] for m in db.get_group_members(group_id)]
    if not member_ids:
        return {}

    assignments = [
        a for a in db.get_completed_assignments_for_users(member_ids, assessment_id)
        if not (exclude_user_id and a.get("user_id") == exclude_user_id)
        and not (exclude_target_id and a.get("target_id") == exclude_target_id)
    ]
    if not assignments:
        return {}

    rows = load_score_rows(db, [a["id"] for a in assignments], dimension_ids)
    norms = compute_geonorms(rows, dimension_ids)
    logger.debug(
        "geonorms_calculated",
        group_id=group_id,
        assessment_id=assessment_id,
        contributing_assignments=len(assignments),
        dimensions=len(norms),
    )
    return norms


def improvement_needed(
    score: float,
    benchmark: Optional[float],
    geonorm: Optional[float],
) -> bool:
    """True when the score trails the benchmark or the group norm."""
    return (benchmark is not None and score < benchmark) or (
        geonorm is not None and score < geonorm
    )

"""Score aggregation.

Raw answers become per-dimension averages (cached server-side in
``assignment_dimension_scores``); those averages become report scores in
one of two modes:

  Single-rater:
      score(d)  = avg_score of the assignment's row for d  (d omitted if no row)
      overall   = mean(score(d) for emitted d), 0 when none

  Multi-rater (360):
      bucket(d, t) = mean(avg_score of raters of type t)
      all_raters   = mean(avg_score of every qualifying rater)
      overall(d)   = all_raters

Scores are never rounded here; rounding belongs to presentation.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import structlog

from talent_reports.models.dimension import DimensionScoreRow
from talent_reports.models.enums import RaterType, map_role_to_rater_type
from talent_reports.models.report import ParticipantResponseSummary, RaterBreakdown
from talent_reports.services.snowflake import SnowflakeService

logger = structlog.get_logger(__name__)


def mean(values: Iterable[float]) -> Optional[float]:
    """Arithmetic mean, None for an empty input."""
    items = list(values)
    if not items:
        return None
    return sum(items) / len(items)


def _to_float(value: Any) -> float:
    return float(value) if value is not None else 0.0


# ----------------------------------------------------------------
# Cached dimension averages
# ----------------------------------------------------------------

def refresh_assignment_scores(db: SnowflakeService, assignment_id: str) -> None:
    """Recompute the assignment's cached dimension averages in the datastore."""
    db.refresh_dimension_scores(assignment_id)
    logger.info("dimension_scores_refreshed", assignment_id=assignment_id)


def load_score_rows(
    db: SnowflakeService,
    assignment_ids: list[str],
    dimension_ids: Optional[list[str]] = None,
) -> list[DimensionScoreRow]:
    return [
        DimensionScoreRow(
            assignment_id=row["assignment_id"],
            dimension_id=row["dimension_id"],
            avg_score=_to_float(row.get("avg_score")),
            answer_count=int(row.get("answer_count") or 0),
        )
        for row in db.get_dimension_scores(assignment_ids, dimension_ids)
    ]


# ----------------------------------------------------------------
# Single-rater mode
# ----------------------------------------------------------------

def single_rater_scores(
    rows: list[DimensionScoreRow],
    dimension_ids: list[str],
) -> dict[str, float]:
    """dimension_id -> score for the dimensions that have a cached row, in dimension order."""
    by_dimension = {r.dimension_id: r.avg_score for r in rows}
    return {d: by_dimension[d] for d in dimension_ids if d in by_dimension}


def overall_score(scores: Iterable[float]) -> float:
    """Mean of emitted dimension scores; 0 when there are none."""
    return mean(scores) or 0.0


# ----------------------------------------------------------------
# Multi-rater (360) mode
# ----------------------------------------------------------------

@dataclass
class RaterPool:
    """Completed rater assignments about one target, with counts for partial detection."""

    assignments: list[dict[str, Any]]
    rater_types: dict[str, RaterType]
    total: int

    @property
    def completed(self) -> int:
        return len(self.assignments)

    @property
    def assignment_ids(self) -> list[str]:
        return [a["id"] for a in self.assignments]

    @property
    def partial(self) -> bool:
        return self.completed == 0 or self.completed < self.total

    def summary(self) -> ParticipantResponseSummary:
        return ParticipantResponseSummary(completed=self.completed, total=self.total)


def gather_raters(
    db: SnowflakeService,
    target_id: str,
    assessment_id: str,
    group_members: Optional[list[dict[str, Any]]] = None,
) -> RaterPool:
    """Collect the completed assignments about a target.

    With a group, only its members' assignments count; when that yields
    nothing the unrestricted set is used. ``total`` is the group size.
    """
    members = group_members or []
    roles = {m["profile_id"]: map_role_to_rater_type(m.get("role")) for m in members}

    assignments: list[dict[str, Any]] = []
    if members:
        assignments = db.get_completed_target_assignments(
            target_id, assessment_id, user_ids=list(roles)
        )
    if not assignments:
        assignments = db.get_completed_target_assignments(target_id, assessment_id)

    rater_types = {
        a["id"]: roles.get(a.get("user_id"), RaterType.OTHER)
        for a in assignments
    }
    pool = RaterPool(assignments=assignments, rater_types=rater_types, total=len(members))
    logger.debug(
        "raters_gathered",
        target_id=target_id,
        completed=pool.completed,
        total=pool.total,
    )
    return pool


def aggregate_360(
    rows: list[DimensionScoreRow],
    dimension_ids: list[str],
    rater_types: dict[str, RaterType],
) -> dict[str, RaterBreakdown]:
    """dimension_id -> breakdown; dimensions without any rater score are left out."""
    result: dict[str, RaterBreakdown] = {}
    for dimension_id in dimension_ids:
        scored = [
            r for r in rows
            if r.dimension_id == dimension_id and r.assignment_id in rater_types
        ]
        if not scored:
            continue
        buckets: dict[RaterType, list[float]] = defaultdict(list)
        for r in scored:
            buckets[rater_types[r.assignment_id]].append(r.avg_score)
        result[dimension_id] = RaterBreakdown(
            peer=mean(buckets[RaterType.PEER]),
            direct_report=mean(buckets[RaterType.DIRECT_REPORT]),
            supervisor=mean(buckets[RaterType.SUPERVISOR]),
            self=mean(buckets[RaterType.SELF]),
            other=mean(buckets[RaterType.OTHER]),
            all_raters=mean(r.avg_score for r in scored),
        )
    return result


def resolve_target_group(db: SnowflakeService, assignment: dict[str, Any]) -> Optional[dict[str, Any]]:
    """The assignment's own group, else the group built around its target."""
    if assignment.get("group_id"):
        group = db.get_group(assignment["group_id"])
        if group:
            return group
    if not assignment.get("target_id"):
        return None
    return db.get_group_for_target(assignment["target_id"])

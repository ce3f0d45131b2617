"""Feedback assignment.

Two policies:

* Range-matched library (single-rater): every library entry whose inclusive
  ``[min_score, max_score]`` contains the score is kept, in library order.
  ``overall`` entries without a dimension match the overall score;
  ``specific`` entries match their own dimension's score, subdimensions included.
* Harvest (360): the raters' free-text answers, grouped by the field's
  dimension (untagged answers under ``None``), verbatim and in answer order.
"""
from collections import defaultdict
from typing import Any, Optional

import structlog

from talent_reports.models.enums import FeedbackType
from talent_reports.models.feedback import FeedbackAssignment, FeedbackEntry
from talent_reports.reports import aggregator
from talent_reports.reports.dimensions import resolve_dimensions, top_level
from talent_reports.reports.errors import AssignmentNotFoundError
from talent_reports.services.snowflake import SnowflakeService

logger = structlog.get_logger(__name__)


def _library_key(entry: FeedbackEntry) -> tuple:
    created = entry.created_at.timestamp() if entry.created_at else float("-inf")
    return (entry.sort_order, created, entry.id)


def select_range_feedback(
    library: list[FeedbackEntry],
    overall_score: float,
    dimension_scores: dict[str, float],
) -> list[FeedbackAssignment]:
    """Match library entries against the overall and per-dimension scores."""
    selected: list[FeedbackAssignment] = []
    ordered = sorted(library, key=_library_key)

    for entry in ordered:
        if entry.type == FeedbackType.OVERALL and entry.dimension_id is None:
            if entry.matches(overall_score):
                selected.append(_assignment(entry))

    for dimension_id, score in dimension_scores.items():
        for entry in ordered:
            if entry.type != FeedbackType.SPECIFIC or entry.dimension_id != dimension_id:
                continue
            if entry.matches(score):
                selected.append(_assignment(entry))

    return selected


def _assignment(entry: FeedbackEntry) -> FeedbackAssignment:
    return FeedbackAssignment(
        dimension_id=entry.dimension_id,
        feedback_id=entry.id,
        feedback_content=entry.feedback,
        type=entry.type,
    )


def harvest_text_feedback(text_answers: list[dict[str, Any]]) -> dict[Optional[str], list[str]]:
    """Group non-empty free-text answers by dimension, preserving order."""
    grouped: dict[Optional[str], list[str]] = defaultdict(list)
    for answer in text_answers:
        value = answer.get("value")
        if value is None:
            continue
        text = value if isinstance(value, str) else str(value)
        if not text.strip():
            continue
        grouped[answer.get("dimension_id") or None].append(text)
    return dict(grouped)


def harvested_assignments(grouped: dict[Optional[str], list[str]]) -> list[FeedbackAssignment]:
    return [
        FeedbackAssignment(
            dimension_id=dimension_id,
            feedback_id=None,
            feedback_content=text,
            type=FeedbackType.TEXT_360,
        )
        for dimension_id, texts in grouped.items()
        for text in texts
    ]


def load_library(db: SnowflakeService, assessment_id: str) -> list[FeedbackEntry]:
    return [FeedbackEntry(**row) for row in db.get_feedback_library(assessment_id)]


def assign_feedback(db: SnowflakeService, assignment_id: str) -> list[FeedbackAssignment]:
    """Compute the assignment's feedback and overwrite ``report_data.feedback_assigned``."""
    assignment = db.get_assignment(assignment_id)
    if not assignment:
        raise AssignmentNotFoundError()

    assessment_id = assignment["assessment_id"]

    if assignment.get("is_360"):
        target_id = assignment.get("target_id")
        if not target_id:
            raise AssignmentNotFoundError("Assignment not found or invalid for 360 report")
        group = aggregator.resolve_target_group(db, assignment)
        members = db.get_group_members(group["id"]) if group else []
        pool = aggregator.gather_raters(db, target_id, assessment_id, members)
        grouped = harvest_text_feedback(db.get_text_answers(pool.assignment_ids))
        assigned = harvested_assignments(grouped)
    else:
        all_dimensions = resolve_dimensions(db, assessment_id)
        all_ids = [d.id for d in all_dimensions]
        rows = aggregator.load_score_rows(db, [assignment_id], all_ids)
        # specific entries match any scored dimension; the overall score is over top-level ones
        scores = aggregator.single_rater_scores(rows, all_ids)
        overall = aggregator.overall_score(
            scores[d.id] for d in top_level(all_dimensions) if d.id in scores
        )
        assigned = select_range_feedback(load_library(db, assessment_id), overall, scores)

    db.set_feedback_assigned(
        assignment_id,
        [a.model_dump(mode="json") for a in assigned],
    )
    logger.info(
        "feedback_assigned",
        assignment_id=assignment_id,
        entries=len(assigned),
        harvested=bool(assignment.get("is_360")),
    )
    return assigned


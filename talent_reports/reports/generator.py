"""Report assembly.

Dimension tree -> scores -> benchmarks/norms -> feedback, for each of the
two report shapes. Missing data never raises: absent comparisons are None,
a 360 target with no completed raters yields a partial report.
"""
from datetime import datetime, timezone
from typing import Any, Optional, Union

import structlog

from talent_reports.models.enums import FeedbackType
from talent_reports.models.feedback import FeedbackAssignment
from talent_reports.models.report import (
    DimensionReport360,
    DimensionReportLeaderBlocker,
    RaterBreakdown,
    Report360Data,
    ReportLeaderBlockerData,
    SubdimensionReport,
)
from talent_reports.reports import aggregator
from talent_reports.reports.dimensions import children_of, resolve_dimensions, top_level
from talent_reports.reports.errors import AssessmentTypeMismatchError, AssignmentNotFoundError
from talent_reports.reports.feedback import harvest_text_feedback
from talent_reports.reports.norms import benchmark_map, calculate_geonorms, improvement_needed
from talent_reports.services.snowflake import SnowflakeService

logger = structlog.get_logger(__name__)

BLOCKER_ASSESSMENT_TYPE = "blockers"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _load_assignment(db: SnowflakeService, assignment_id: str) -> dict[str, Any]:
    assignment = db.get_assignment(assignment_id)
    if not assignment:
        raise AssignmentNotFoundError()
    return assignment


def generate_360_report(db: SnowflakeService, assignment_id: str) -> Report360Data:
    """Multi-rater report about the assignment's target."""
    assignment = _load_assignment(db, assignment_id)
    if not assignment.get("is_360"):
        raise AssessmentTypeMismatchError(
            "This is not a 360 assessment. Use generate_leader_blocker_report instead."
        )
    target_id = assignment.get("target_id")
    if not target_id:
        raise AssignmentNotFoundError("Assignment not found or invalid for 360 report")

    assessment_id = assignment["assessment_id"]
    target = db.get_profile(target_id) or {}
    group = aggregator.resolve_target_group(db, assignment)
    members = db.get_group_members(group["id"]) if group else []
    pool = aggregator.gather_raters(db, target_id, assessment_id, members)

    dimensions = top_level(resolve_dimensions(db, assessment_id))
    dimension_ids = [d.id for d in dimensions]

    report = Report360Data(
        assignment_id=assignment_id,
        assessment_id=assessment_id,
        assessment_title=assignment.get("assessment_title") or "Unknown Assessment",
        group_id=group["id"] if group else None,
        group_name=group.get("name") if group else None,
        generated_at=_now(),
        target_id=target_id,
        target_name=target.get("name") or "Unknown",
        target_email=target.get("email") or "",
        partial=pool.partial,
        participant_response_summary=pool.summary(),
    )

    if pool.completed == 0:
        report.dimensions = [
            DimensionReport360(
                dimension_id=d.id,
                dimension_name=d.name,
                dimension_code=d.code,
                overall_score=0.0,
                rater_breakdown=RaterBreakdown(),
                improvement_needed=False,
            )
            for d in dimensions
        ]
        logger.info(
            "report_generated",
            report_type="360",
            assignment_id=assignment_id,
            partial=True,
            completed=0,
            total=pool.total,
        )
        return report

    rows = aggregator.load_score_rows(db, pool.assignment_ids, dimension_ids)
    breakdowns = aggregator.aggregate_360(rows, dimension_ids, pool.rater_types)
    benchmarks = benchmark_map(db, dimension_ids, target.get("industry_id"))
    geonorms = calculate_geonorms(
        db,
        group["id"] if group else None,
        assessment_id,
        dimension_ids,
        exclude_target_id=target_id,
    )
    text_feedback = harvest_text_feedback(db.get_text_answers(pool.assignment_ids))

    for dimension in dimensions:
        breakdown = breakdowns.get(dimension.id)
        if breakdown is None:
            continue
        score = breakdown.all_raters or 0.0
        benchmark = benchmarks.get(dimension.id)
        norm = geonorms.get(dimension.id)
        report.dimensions.append(
            DimensionReport360(
                dimension_id=dimension.id,
                dimension_name=dimension.name,
                dimension_code=dimension.code,
                overall_score=score,
                rater_breakdown=breakdown,
                industry_benchmark=benchmark,
                geonorm=norm.avg_score if norm else None,
                geonorm_participant_count=norm.participant_count if norm else 0,
                improvement_needed=improvement_needed(
                    score, benchmark, norm.avg_score if norm else None
                ),
                text_feedback=text_feedback.get(dimension.id, []),
            )
        )

    report.overall_score = aggregator.overall_score(d.overall_score for d in report.dimensions)
    report.overall_text_feedback = text_feedback.get(None, [])
    logger.info(
        "report_generated",
        report_type="360",
        assignment_id=assignment_id,
        dimensions=len(report.dimensions),
        partial=report.partial,
        completed=pool.completed,
        total=pool.total,
    )
    return report


def _assigned_feedback(row: Optional[dict[str, Any]]) -> list[FeedbackAssignment]:
    entries = (row or {}).get("feedback_assigned") or []
    return [FeedbackAssignment.model_validate(e) for e in entries if isinstance(e, dict)]


def generate_leader_blocker_report(db: SnowflakeService, assignment_id: str) -> ReportLeaderBlockerData:
    """Single-rater report about the respondent."""
    assignment = _load_assignment(db, assignment_id)
    if assignment.get("is_360"):
        raise AssessmentTypeMismatchError(
            "This is a 360 assessment. Use generate_360_report instead."
        )

    user_id = assignment["user_id"]
    assessment_id = assignment["assessment_id"]
    user = db.get_profile(user_id) or {}
    group = db.get_group_for_member(user_id)

    all_dimensions = resolve_dimensions(db, assessment_id)
    dimensions = top_level(all_dimensions)
    all_ids = [d.id for d in all_dimensions]

    rows = aggregator.load_score_rows(db, [assignment_id], all_ids)
    scores = aggregator.single_rater_scores(rows, all_ids)
    benchmarks = benchmark_map(db, all_ids, user.get("industry_id"))
    geonorms = calculate_geonorms(
        db,
        group["id"] if group else None,
        assessment_id,
        all_ids,
        exclude_user_id=user_id,
    )
    assigned = _assigned_feedback(db.get_report_row(assignment_id))

    def comparisons(dimension_id: str, score: float) -> dict[str, Any]:
        benchmark = benchmarks.get(dimension_id)
        norm = geonorms.get(dimension_id)
        return {
            "industry_benchmark": benchmark,
            "geonorm": norm.avg_score if norm else None,
            "geonorm_participant_count": norm.participant_count if norm else 0,
            "improvement_needed": improvement_needed(
                score, benchmark, norm.avg_score if norm else None
            ),
        }

    report = ReportLeaderBlockerData(
        assignment_id=assignment_id,
        assessment_id=assessment_id,
        assessment_title=assignment.get("assessment_title") or "Unknown Assessment",
        group_id=group["id"] if group else None,
        group_name=group.get("name") if group else None,
        generated_at=_now(),
        user_id=user_id,
        user_name=user.get("name") or "Unknown",
        user_email=user.get("email") or "",
        is_blocker=(assignment.get("assessment_type") == BLOCKER_ASSESSMENT_TYPE),
    )

    def specific_for(dimension_id: str) -> list[FeedbackAssignment]:
        return [
            f for f in assigned
            if f.dimension_id == dimension_id and f.type == FeedbackType.SPECIFIC
        ]

    for dimension in dimensions:
        if dimension.id not in scores:
            continue
        score = scores[dimension.id]
        specific = specific_for(dimension.id)
        subdimensions = []
        for child in children_of(all_dimensions, dimension.id):
            if child.id not in scores:
                continue
            child_feedback = specific_for(child.id)
            subdimensions.append(
                SubdimensionReport(
                    dimension_id=child.id,
                    dimension_name=child.name,
                    dimension_code=child.code,
                    target_score=scores[child.id],
                    specific_feedback=[f.feedback_content for f in child_feedback],
                    specific_feedback_ids=[f.feedback_id for f in child_feedback if f.feedback_id],
                    **comparisons(child.id, scores[child.id]),
                )
            )
        report.dimensions.append(
            DimensionReportLeaderBlocker(
                dimension_id=dimension.id,
                dimension_name=dimension.name,
                dimension_code=dimension.code,
                target_score=score,
                specific_feedback=[f.feedback_content for f in specific],
                specific_feedback_ids=[f.feedback_id for f in specific if f.feedback_id],
                subdimensions=subdimensions,
                **comparisons(dimension.id, score),
            )
        )

    overall = [
        f for f in assigned
        if f.dimension_id is None and f.type == FeedbackType.OVERALL
    ]
    report.overall_score = aggregator.overall_score(d.target_score for d in report.dimensions)
    report.overall_feedback = [f.feedback_content for f in overall]
    report.overall_feedback_ids = [f.feedback_id for f in overall if f.feedback_id]
    logger.info(
        "report_generated",
        report_type="leader_blocker",
        assignment_id=assignment_id,
        dimensions=len(report.dimensions),
        is_blocker=report.is_blocker,
    )
    return report


def generate_report(
    db: SnowflakeService,
    assignment_id: str,
) -> Union[Report360Data, ReportLeaderBlockerData]:
    """Dispatch on the assessment mode."""
    assignment = _load_assignment(db, assignment_id)
    if assignment.get("is_360"):
        return generate_360_report(db, assignment_id)
    return generate_leader_blocker_report(db, assignment_id)

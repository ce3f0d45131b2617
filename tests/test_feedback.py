"""Tests for feedback selection and harvesting."""
from datetime import datetime, timezone
from unittest.mock import MagicMock

from hypothesis import given
from hypothesis import strategies as st

from talent_reports.models import FeedbackEntry, FeedbackType
from talent_reports.reports.feedback import (
    assign_feedback,
    harvest_text_feedback,
    harvested_assignments,
    select_range_feedback,
)


def _entry(id, type, dimension_id=None, lo=None, hi=None, sort_order=0, created=None):
    return FeedbackEntry(
        id=id,
        assessment_id="s1",
        dimension_id=dimension_id,
        type=type,
        feedback=f"text {id}",
        min_score=lo,
        max_score=hi,
        sort_order=sort_order,
        created_at=created,
    )


class TestRangeSelection:
    """Library entries matched on inclusive ranges."""

    def test_boundaries_are_inclusive(self):
        library = [
            _entry("low", FeedbackType.OVERALL, lo=0, hi=2.5),
            _entry("high", FeedbackType.OVERALL, lo=2.5, hi=5),
        ]
        selected = select_range_feedback(library, 2.5, {})
        assert [s.feedback_id for s in selected] == ["low", "high"]

    def test_open_bounds_match_everything(self):
        library = [_entry("any", FeedbackType.OVERALL)]
        assert len(select_range_feedback(library, 99.0, {})) == 1

    def test_specific_entries_match_own_dimension(self):
        library = [
            _entry("d1-low", FeedbackType.SPECIFIC, "d1", 0, 2),
            _entry("d1-high", FeedbackType.SPECIFIC, "d1", 2.01, 5),
            _entry("d2-any", FeedbackType.SPECIFIC, "d2"),
        ]
        selected = select_range_feedback(library, 3.0, {"d1": 4.0})
        assert [s.feedback_id for s in selected] == ["d1-high"]
        assert selected[0].type == FeedbackType.SPECIFIC
        assert selected[0].dimension_id == "d1"

    def test_overall_first_then_library_order(self):
        t0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
        t1 = datetime(2026, 1, 2, tzinfo=timezone.utc)
        library = [
            _entry("dim", FeedbackType.SPECIFIC, "d1"),
            _entry("second", FeedbackType.OVERALL, sort_order=1, created=t0),
            _entry("first-late", FeedbackType.OVERALL, sort_order=0, created=t1),
            _entry("first-early", FeedbackType.OVERALL, sort_order=0, created=t0),
        ]
        selected = select_range_feedback(library, 3.0, {"d1": 3.0})
        assert [s.feedback_id for s in selected] == ["first-early", "first-late", "second", "dim"]

    def test_empty_library_selects_nothing(self):
        assert select_range_feedback([], 3.0, {"d1": 3.0}) == []


class TestHarvest:
    """Free-text comment harvesting for 360 reports."""

    def test_groups_by_dimension_in_order(self):
        answers = [
            {"assignment_id": "a", "value": "First", "dimension_id": "d1"},
            {"assignment_id": "b", "value": "  ", "dimension_id": "d1"},
            {"assignment_id": "b", "value": "Overall note", "dimension_id": None},
            {"assignment_id": "c", "value": "<b>Second</b>", "dimension_id": "d1"},
            {"assignment_id": "c", "value": None, "dimension_id": "d2"},
        ]
        grouped = harvest_text_feedback(answers)
        assert grouped == {"d1": ["First", "<b>Second</b>"], None: ["Overall note"]}

        assigned = harvested_assignments(grouped)
        assert len(assigned) == 3
        assert all(a.type == FeedbackType.TEXT_360 and a.feedback_id is None for a in assigned)


def _single_rater_db():
    """Parent "p" scored 4.0 with one child "c" scored 2.0."""
    db = MagicMock()
    db.get_assignment.return_value = {"id": "a1", "assessment_id": "s1", "is_360": False}
    db.get_dimensions.return_value = [
        {"id": "c", "assessment_id": "s1", "name": "Listening", "code": None, "parent_id": "p"},
        {"id": "p", "assessment_id": "s1", "name": "People", "code": None, "parent_id": None},
    ]
    db.get_dimension_scores.return_value = [
        {"assignment_id": "a1", "dimension_id": "c", "avg_score": 2.0, "answer_count": 2},
        {"assignment_id": "a1", "dimension_id": "p", "avg_score": 4.0, "answer_count": 0},
    ]
    db.get_feedback_library.return_value = [
        {"id": "o1", "assessment_id": "s1", "dimension_id": None, "type": "overall",
         "feedback": "Solid", "min_score": 3.5, "max_score": None, "sort_order": 0},
        {"id": "p-high", "assessment_id": "s1", "dimension_id": "p", "type": "specific",
         "feedback": "Leads people", "min_score": 3, "max_score": 5, "sort_order": 1},
        {"id": "c-low", "assessment_id": "s1", "dimension_id": "c", "type": "specific",
         "feedback": "Listen more", "min_score": 0, "max_score": 2.5, "sort_order": 2},
        {"id": "c-high", "assessment_id": "s1", "dimension_id": "c", "type": "specific",
         "feedback": "Great listener", "min_score": 2.51, "max_score": 5, "sort_order": 3},
    ]
    return db


class TestAssignFeedback:
    """Persisted feedback assignment."""

    def test_single_rater_overwrites_assignment(self):
        db = MagicMock()
        db.get_assignment.return_value = {"id": "a1", "assessment_id": "s1", "is_360": False}
        db.get_dimensions.return_value = [
            {"id": "d1", "assessment_id": "s1", "name": "Drive", "code": None, "parent_id": None},
        ]
        db.get_dimension_scores.return_value = [
            {"assignment_id": "a1", "dimension_id": "d1", "avg_score": 4.0, "answer_count": 3},
        ]
        db.get_feedback_library.return_value = [
            {"id": "o1", "assessment_id": "s1", "dimension_id": None, "type": "overall",
             "feedback": "Solid", "min_score": 3, "max_score": 5, "sort_order": 0},
            {"id": "s1", "assessment_id": "s1", "dimension_id": "d1", "type": "specific",
             "feedback": "Driven", "min_score": 3.5, "max_score": None, "sort_order": 0},
        ]

        assigned = assign_feedback(db, "a1")

        assert [a.feedback_id for a in assigned] == ["o1", "s1"]
        args = db.set_feedback_assigned.call_args[0]
        assert args[0] == "a1"
        assert args[1][0] == {
            "dimension_id": None,
            "feedback_id": "o1",
            "feedback_content": "Solid",
            "type": "overall",
        }

    def test_rerun_replaces_with_the_same_set(self):
        db = _single_rater_db()

        first = assign_feedback(db, "a1")
        second = assign_feedback(db, "a1")

        assert first == second
        stored = [c.args[1] for c in db.set_feedback_assigned.call_args_list]
        assert len(stored) == 2
        assert stored[0] == stored[1]

    def test_subdimensions_match_their_own_entries(self):
        db = _single_rater_db()

        assigned = assign_feedback(db, "a1")

        # overall is the top-level mean (4.0), not pulled down by the child
        assert [(a.feedback_id, a.dimension_id) for a in assigned] == [
            ("o1", None),
            ("c-low", "c"),
            ("p-high", "p"),
        ]

    def test_360_harvests_rater_comments(self):
        db = MagicMock()
        db.get_assignment.return_value = {
            "id": "a1", "assessment_id": "s1", "is_360": True, "target_id": "t1", "group_id": None,
        }
        db.get_group_for_target.return_value = None
        db.get_completed_target_assignments.return_value = [{"id": "r1", "user_id": "u1"}]
        db.get_text_answers.return_value = [{"assignment_id": "r1", "value": "Kind", "dimension_id": "d1"}]

        assigned = assign_feedback(db, "a1")

        db.get_text_answers.assert_called_once_with(["r1"])
        assert assigned[0].feedback_content == "Kind"
        assert assigned[0].type == FeedbackType.TEXT_360
        db.get_feedback_library.assert_not_called()


_bound = st.one_of(st.none(), st.floats(min_value=0, max_value=5, allow_nan=False))


@given(
    st.lists(st.tuples(_bound, _bound), max_size=8),
    st.floats(min_value=0, max_value=5, allow_nan=False),
)
def test_selected_entries_contain_the_score(bounds, score):
    """Every selected overall entry's range contains the overall score, and none is missed."""
    library = [_entry(f"e{i}", FeedbackType.OVERALL, lo=lo, hi=hi) for i, (lo, hi) in enumerate(bounds)]
    selected = {s.feedback_id for s in select_range_feedback(library, score, {})}
    for entry in library:
        inside = (entry.min_score is None or score >= entry.min_score) and (
            entry.max_score is None or score <= entry.max_score
        )
        assert (entry.id in selected) == inside

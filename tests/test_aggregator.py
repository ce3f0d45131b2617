"""Tests for score aggregation."""
import pytest
from unittest.mock import MagicMock
from hypothesis import HealthCheck, given, settings as h_settings
from hypothesis import strategies as st

from talent_reports.models import DimensionScoreRow, RaterType
from talent_reports.reports.aggregator import (
    RaterPool,
    aggregate_360,
    gather_raters,
    mean,
    overall_score,
    resolve_target_group,
    single_rater_scores,
)

h_settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow],
)
h_settings.load_profile("ci")

_score = st.floats(min_value=0.0, max_value=10.0, allow_nan=False, allow_infinity=False)


def _row(assignment_id, dimension_id, score):
    return DimensionScoreRow(assignment_id=assignment_id, dimension_id=dimension_id, avg_score=score)


class TestSingleRater:
    """Single-rater score selection."""

    def test_dimensions_without_rows_are_omitted(self):
        rows = [_row("a1", "d1", 4.0), _row("a1", "d3", 2.0)]
        scores = single_rater_scores(rows, ["d1", "d2", "d3"])
        assert scores == {"d1": 4.0, "d3": 2.0}
        assert overall_score(scores.values()) == 3.0

    def test_overall_of_nothing_is_zero(self):
        assert overall_score([]) == 0.0
        assert mean([]) is None

    @given(st.lists(_score, min_size=1, max_size=20))
    def test_overall_within_bounds(self, values):
        result = overall_score(values)
        assert min(values) - 1e-9 <= result <= max(values) + 1e-9


class TestAggregate360:
    """Multi-rater bucket aggregation."""

    def test_buckets_and_all_raters(self):
        rows = [
            _row("r1", "d1", 3.0),
            _row("r2", "d1", 5.0),
            _row("r3", "d1", 4.0),
            _row("outsider", "d1", 1.0),
        ]
        types = {"r1": RaterType.PEER, "r2": RaterType.PEER, "r3": RaterType.SUPERVISOR}

        result = aggregate_360(rows, ["d1", "d2"], types)

        assert set(result) == {"d1"}
        b = result["d1"]
        assert b.peer == 4.0
        assert b.supervisor == 4.0
        assert b.direct_report is None
        assert b.self is None
        assert b.all_raters == 4.0

    @given(st.lists(st.tuples(st.sampled_from(list(RaterType)), _score), min_size=1, max_size=15))
    def test_all_raters_is_mean_of_every_rater(self, raters):
        rows = [_row(f"r{i}", "d1", s) for i, (_, s) in enumerate(raters)]
        types = {f"r{i}": t for i, (t, _) in enumerate(raters)}
        b = aggregate_360(rows, ["d1"], types)["d1"]
        assert b.all_raters == pytest.approx(sum(s for _, s in raters) / len(raters))


class TestRaterPool:
    """Rater collection and partial detection."""

    def test_zero_completed_is_partial(self):
        pool = RaterPool(assignments=[], rater_types={}, total=5)
        assert pool.partial
        assert pool.summary().model_dump() == {"completed": 0, "total": 5}

    def test_complete_pool_is_not_partial(self):
        pool = RaterPool(assignments=[{"id": "a"}, {"id": "b"}], rater_types={}, total=2)
        assert not pool.partial

    def test_members_restrict_then_fall_back(self):
        db = MagicMock()
        db.get_completed_target_assignments.side_effect = [
            [],
            [{"id": "x1", "user_id": "stranger"}],
        ]
        members = [{"profile_id": "u1", "role": "Manager"}]

        pool = gather_raters(db, "t1", "s1", members)

        assert db.get_completed_target_assignments.call_count == 2
        assert pool.assignment_ids == ["x1"]
        assert pool.rater_types["x1"] == RaterType.OTHER
        assert pool.total == 1

    def test_roles_map_to_rater_types(self):
        db = MagicMock()
        db.get_completed_target_assignments.return_value = [
            {"id": "x1", "user_id": "u1"},
            {"id": "x2", "user_id": "u2"},
        ]
        members = [
            {"profile_id": "u1", "role": "boss"},
            {"profile_id": "u2", "role": "colleague"},
        ]
        pool = gather_raters(db, "t1", "s1", members)
        assert pool.rater_types == {"x1": RaterType.SUPERVISOR, "x2": RaterType.PEER}


class TestResolveTargetGroup:
    def test_prefers_assignment_group(self):
        db = MagicMock()
        db.get_group.return_value = {"id": "g1", "name": "Ops"}
        assert resolve_target_group(db, {"group_id": "g1", "target_id": "t1"})["id"] == "g1"
        db.get_group_for_target.assert_not_called()

    def test_falls_back_to_target_group(self):
        db = MagicMock()
        db.get_group_for_target.return_value = {"id": "g2", "name": "Target group"}
        assert resolve_target_group(db, {"target_id": "t1"})["id"] == "g2"

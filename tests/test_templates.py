"""Tests for report template lookup and application."""
from unittest.mock import MagicMock

from talent_reports.models import ReportTemplate
from talent_reports.reports.templates import apply_template, load_template, presentation_for
from talent_reports.services.redis_cache import CacheKeys


def _template(**overrides):
    data = {
        "id": "tpl1",
        "assessment_id": "s1",
        "name": "Board pack",
        "is_default": True,
        "components": {"benchmarks": False},
        "labels": {"feedback_label": "Coaching Notes", "dimension_label": ""},
        "styling": {"primary_color": "#003366"},
    }
    data.update(overrides)
    return ReportTemplate(**data)


class TestPresentation:
    """Merging stored settings over defaults."""

    def test_unset_components_stay_enabled(self):
        p = presentation_for(_template())
        assert p.components.benchmarks is False
        assert p.components.geonorms is True
        assert p.components.rater_breakdown is True

    def test_blank_labels_fall_back(self):
        p = presentation_for(_template())
        assert p.labels.feedback_label == "Coaching Notes"
        assert p.labels.dimension_label == "Dimension"

    def test_no_template_gives_defaults(self):
        p = presentation_for(None)
        assert p.template_id is None
        assert p.labels.benchmark_label == "Industry Benchmark"


class TestApplyTemplate:
    """Template application never touches the canonical report."""

    def test_input_report_is_not_modified(self, report_360):
        before = report_360.model_dump()
        templated = apply_template(report_360, _template())

        assert report_360.model_dump() == before
        assert report_360.presentation is None
        assert templated.presentation.template_id == "tpl1"
        assert templated is not report_360

    def test_without_template_returns_report(self, report_leader):
        assert apply_template(report_leader, None) is report_leader


class TestLoadTemplate:
    """Template lookup with Redis caching."""

    def test_cache_hit_skips_datastore(self):
        db = MagicMock()
        cache = MagicMock()
        cache.get.return_value = _template()

        template = load_template(db, cache, "s1")

        assert template.id == "tpl1"
        cache.get.assert_called_once_with(CacheKeys.template("s1"), ReportTemplate)
        db.get_report_template.assert_not_called()

    def test_cache_miss_loads_and_stores(self):
        db = MagicMock()
        db.get_report_template.return_value = _template().model_dump()
        cache = MagicMock()
        cache.get.return_value = None

        template = load_template(db, cache, "s1")

        assert template.name == "Board pack"
        key, stored, ttl = cache.set.call_args[0]
        assert key == "report_template:s1"
        assert stored.id == "tpl1"
        assert ttl == 600

    def test_missing_template_is_none(self):
        db = MagicMock()
        db.get_report_template.return_value = None
        assert load_template(db, None, "s1") is None

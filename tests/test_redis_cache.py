"""Tests for the Redis cache and single-use render tokens (fakeredis)."""
import asyncio
import fakeredis
import pytest

from talent_reports.models import ReportTemplate
from talent_reports.services.redis_cache import CacheKeys, RedisCache


@pytest.fixture
def cache():
    return RedisCache("localhost", 6379, client=fakeredis.FakeRedis(decode_responses=True))


class TestModelCache:
    def test_round_trip_and_delete(self, cache):
        template = ReportTemplate(id="tpl", assessment_id="s1", labels={"feedback_label": "Notes"})
        key = CacheKeys.template("s1")

        assert cache.set(key, template, 60) is True
        assert cache.get(key, ReportTemplate) == template
        assert cache.client.ttl(key) <= 60

        cache.delete(key)
        assert cache.get(key, ReportTemplate) is None

    def test_health_check(self, cache):
        assert asyncio.run(cache.health_check()) == (True, None)


class TestRenderTokens:
    """Print-view service tokens."""

    def test_token_is_single_use(self, cache):
        token = cache.issue_token("a1", 300)

        assert token
        assert cache.consume_token(token, "a1") is True
        assert cache.consume_token(token, "a1") is False

    def test_token_is_bound_to_assignment(self, cache):
        token = cache.issue_token("a1", 300)
        assert cache.consume_token(token, "a2") is False
        # spent even on mismatch
        assert cache.consume_token(token, "a1") is False

    def test_token_has_ttl(self, cache):
        token = cache.issue_token("a1", 300)
        assert 0 < cache.client.ttl(CacheKeys.render_token(token)) <= 300

    def test_unknown_or_empty_token(self, cache):
        assert cache.consume_token("nope", "a1") is False
        assert cache.consume_token("", "a1") is False

    def test_tokens_are_unique(self, cache):
        assert cache.issue_token("a1", 300) != cache.issue_token("a1", 300)

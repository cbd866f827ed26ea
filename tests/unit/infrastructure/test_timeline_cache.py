"""Unit tests for TimelineCache."""

from __future__ import annotations

from uuid import uuid4

from submission_delivery.infrastructure.cache.timeline_cache import TimelineCache
from tests.helpers import FakeTimeAuthority


class TestTimelineCache:
    """Tests for TTL expiry and invalidation."""

    def test_hit_until_ttl_elapses(self, fake_time_authority: FakeTimeAuthority) -> None:
        cache = TimelineCache(fake_time_authority, ttl_seconds=30)
        cache.set("k", ["a"])

        fake_time_authority.advance(seconds=29)
        assert cache.get("k") == ["a"]

        fake_time_authority.advance(seconds=1)
        assert cache.get("k") is None
        assert cache.size == 0

    def test_zero_ttl_disables_caching(
        self, fake_time_authority: FakeTimeAuthority
    ) -> None:
        cache = TimelineCache(fake_time_authority, ttl_seconds=0)

        cache.set("k", 1)

        assert cache.get("k") is None

    def test_per_entry_ttl_override(self, fake_time_authority: FakeTimeAuthority) -> None:
        cache = TimelineCache(fake_time_authority, ttl_seconds=30)
        cache.set(TimelineCache.stale_key(60), [], ttl_seconds=120)

        fake_time_authority.advance(seconds=90)

        assert cache.get("status:stale:60") == []

    def test_invalidate_submission_drops_both_views(
        self, fake_time_authority: FakeTimeAuthority
    ) -> None:
        cache = TimelineCache(fake_time_authority)
        submission_id = uuid4()
        other_id = uuid4()
        cache.set(TimelineCache.timeline_key(submission_id), [])
        cache.set(TimelineCache.overview_key(submission_id), {})
        cache.set(TimelineCache.timeline_key(other_id), [])

        cache.invalidate_submission(submission_id)

        assert cache.get(f"status:{submission_id}:timeline") is None
        assert cache.get(f"status:{submission_id}:overview") is None
        assert cache.get(f"status:{other_id}:timeline") == []

    def test_invalidate_submission_drops_stale_reports(
        self, fake_time_authority: FakeTimeAuthority
    ) -> None:
        cache = TimelineCache(fake_time_authority)
        cache.set(TimelineCache.stale_key(15), ["report"])
        cache.set(TimelineCache.stale_key(60), ["report"])

        cache.invalidate_submission(uuid4())

        assert cache.get("status:stale:15") is None
        assert cache.get("status:stale:60") is None
        assert cache.size == 0

    def test_clear(self, fake_time_authority: FakeTimeAuthority) -> None:
        cache = TimelineCache(fake_time_authority)
        cache.set("a", 1)
        cache.set("b", 2)

        cache.clear()

        assert cache.size == 0

"""
Tests for the content-addressed stats cache.
"""

from datetime import date, timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from liftplan.core.cache import StatsCache, hash_params, stable_serialize
from liftplan.db.database import utcnow
from liftplan.models import StatsCacheEntry


class Counter:
    """Async compute callback that counts its calls."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.payload


class TestStableSerialize:

    def test_key_order_independent(self):
        """Same items, different insertion order, same hash."""
        a = {"from": "2026-01-01", "to": "2026-02-01", "filters": {"plan": 1, "exercise": "Squat"}}
        b = {"filters": {"exercise": "Squat", "plan": 1}, "to": "2026-02-01", "from": "2026-01-01"}

        assert stable_serialize(a) == stable_serialize(b)
        assert hash_params(a) == hash_params(b)

    def test_different_values_differ(self):
        assert hash_params({"days": 30}) != hash_params({"days": 31})

    def test_dates_and_sets(self):
        assert stable_serialize({"d": date(2026, 1, 2)}) == '{"d":"2026-01-02"}'
        assert stable_serialize({3, 1, 2}) == "[1,2,3]"
        assert stable_serialize((1, None)) == "[1,null]"

    def test_hash_is_sha256_hex(self):
        assert len(hash_params({})) == 64


class TestStatsCache:

    @pytest.mark.asyncio
    async def test_compute_once(self, db):
        cache = StatsCache(db)
        compute = Counter({"best": []})

        first = await cache.get_or_compute("dev", "e1rm_best", {"days": 30}, compute)
        second = await cache.get_or_compute("dev", "e1rm_best", {"days": 30}, compute)

        assert first == second == {"best": []}
        assert compute.calls == 1

    @pytest.mark.asyncio
    async def test_keys_are_per_user_and_metric(self, db):
        cache = StatsCache(db)
        compute = Counter({"totals": {}})

        await cache.get_or_compute("dev", "volume_totals", {"days": 30}, compute)
        await cache.get_or_compute("other", "volume_totals", {"days": 30}, compute)
        await cache.get_or_compute("dev", "volume_series", {"days": 30}, compute)

        assert compute.calls == 3

    @pytest.mark.asyncio
    async def test_stale_entry_recomputed(self, db):
        cache = StatsCache(db)
        await cache.set("dev", "prs", {"limit": 5}, {"items": ["old"]})
        await db.execute(
            update(StatsCacheEntry).values(updated_at=utcnow() - timedelta(minutes=10))
        )

        compute = Counter({"items": ["new"]})
        result = await cache.get_or_compute("dev", "prs", {"limit": 5}, compute, max_age_seconds=60)

        assert result == {"items": ["new"]}
        assert compute.calls == 1
        assert await cache.get("dev", "prs", {"limit": 5}, max_age_seconds=60) == {"items": ["new"]}

    @pytest.mark.asyncio
    async def test_invalidate(self, db):
        cache = StatsCache(db)
        await cache.set("dev", "prs", {}, {"items": []})
        await cache.set("dev", "compliance", {}, {"planned": 0})
        await cache.set("other", "prs", {}, {"items": []})

        removed = await cache.invalidate("dev")

        assert removed == 2
        assert await cache.get("dev", "prs", {}) is None
        assert await cache.get("other", "prs", {}) == {"items": []}

    @pytest.mark.asyncio
    async def test_disabled_cache_always_computes(self, db):
        cache = StatsCache(db, enabled=False)
        compute = Counter({"ok": True})

        await cache.get_or_compute("dev", "prs", {}, compute)
        await cache.get_or_compute("dev", "prs", {}, compute)

        assert compute.calls == 2
        assert await cache.get("dev", "prs", {}) is None

    @pytest.mark.asyncio
    async def test_read_failure_degrades_to_compute(self, db, monkeypatch):
        """A broken cache table never fails the stats request."""
        cache = StatsCache(db)

        async def broken_find(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("no such table"))

        monkeypatch.setattr(cache._repo, "find", broken_find)
        compute = Counter({"ok": True})

        result = await cache.get_or_compute("dev", "prs", {}, compute)

        assert result == {"ok": True}
        assert compute.calls == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

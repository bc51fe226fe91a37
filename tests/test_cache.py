import pytest

from dataset_insight_api.core.cache import CacheService, compute_key
from dataset_insight_api.models.domain import DataSummary, EnrichmentResult


def _summary(rows=1):
    return DataSummary(row_count=rows, column_count=0, duplicate_count=0, quality_score=100)


class TestCacheKeys:
    def test_stable(self):
        assert compute_key("a,b\n1,2", "default", "v1") == compute_key("a,b\n1,2", "default", "v1")

    def test_sensitive_to_every_part(self):
        base = compute_key("a,b\n1,2", "default", "v1")

        assert compute_key("a,b\n1,3", "default", "v1") != base
        assert compute_key("a,b\n1,2", "sync", "v1") != base
        assert compute_key("a,b\n1,2", "default", "v2") != base

    def test_parts_are_separated(self):
        assert compute_key("ab", "c", "v1") != compute_key("a", "bc", "v1")

    def test_version_bump_misses(self):
        assert CacheService(version="v1").key("x") != CacheService(version="v2").key("x")


class TestCacheStore:
    @pytest.mark.asyncio
    async def test_miss_returns_none(self):
        cache = CacheService(version="t")
        assert await cache.get("nope") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self):
        cache = CacheService(version="t")
        key = cache.key("content")
        insight = EnrichmentResult(summary="ok")
        await cache.set(key, _summary(3), insight)

        record = await cache.get(key)
        assert record.key == key
        assert record.summary.row_count == 3
        assert record.enrichment == insight
        assert await cache.has(key)

    @pytest.mark.asyncio
    async def test_stored_summary_is_a_copy(self):
        cache = CacheService(version="t")
        summary = _summary(3)
        await cache.set("k", summary)
        summary.row_count = 99

        assert (await cache.get("k")).summary.row_count == 3

    @pytest.mark.asyncio
    async def test_delete_and_clear(self):
        cache = CacheService(version="t")
        await cache.set("a", _summary())
        await cache.set("b", _summary())

        await cache.delete("a")
        assert await cache.get("a") is None
        await cache.clear()
        assert not await cache.has("b")

import asyncio

import pytest

from smis.core import cache as cache_module
from smis.core.cache import CacheManager, TTLCache, cache_manager
from smis.core.cache_decorators import cache_response, invalidate_cache_pattern
from smis.utils.cache_metrics import metrics


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(cache_module.time, "monotonic", fake)
    return fake


def test_get_before_and_after_expiry(clock):
    cache = TTLCache(default_ttl=60)
    cache.set("course:1", {"name": "Algebra"})

    clock.now += 59.9
    assert cache.get("course:1") == {"name": "Algebra"}
    assert cache.has("course:1")

    clock.now += 0.1
    assert cache.get("course:1") is None
    assert not cache.has("course:1")
    assert cache.size() == 0


def test_per_entry_ttl(clock):
    cache = TTLCache(default_ttl=60)
    cache.set("short", 1, ttl=5)
    cache.set("long", 2)

    clock.now += 10

    assert cache.keys() == ["long"]


def test_get_default_and_falsy_values(clock):
    cache = TTLCache()
    cache.set("empty", [])

    assert cache.get("empty") == []
    assert cache.get("missing", "fallback") == "fallback"
    assert cache.has("empty")


def test_last_write_resets_deadline(clock):
    cache = TTLCache(default_ttl=10)
    cache.set("k", "old")
    clock.now += 8
    cache.set("k", "new")
    clock.now += 8

    assert cache.get("k") == "new"


def test_delete_and_clear(clock):
    cache = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.clear()
    assert cache.size() == 0


def test_invalidate_pattern(clock):
    cache = TTLCache()
    for key in ("GET /api/courses/1", "GET /api/courses/2", "GET /api/classes/1"):
        cache.set(key, key)

    removed = cache.invalidate_pattern(r"^GET /api/courses/")

    assert removed == 2
    assert cache.keys() == ["GET /api/classes/1"]
    assert cache.stats() == {"size": 1, "keys": ["GET /api/classes/1"]}


@pytest.mark.asyncio
async def test_timer_evicts_entry_without_a_read():
    cache = TTLCache()
    cache.set("k", "v", ttl=0.05)

    await asyncio.sleep(0.1)

    assert "k" not in cache._entries
    assert cache._timers == {}


@pytest.mark.asyncio
async def test_rewrite_cancels_pending_timer():
    cache = TTLCache()
    cache.set("k", "first", ttl=0.05)
    cache.set("k", "second", ttl=30)

    await asyncio.sleep(0.1)

    assert cache.get("k") == "second"
    cache.clear()


@pytest.mark.asyncio
async def test_cache_manager_memory_backend():
    manager = CacheManager(backend="memory", default_ttl=30)

    await manager.set(manager.make_key("courses", "id", 1), {"id": 1})
    await manager.set(manager.make_key("courses", "id", 2), {"id": 2})
    await manager.set(manager.make_key("classes", "list"), [])

    assert await manager.get("courses:id:1") == {"id": 1}
    assert await manager.exists("classes:list")
    assert await manager.delete_prefix("courses") == 2
    assert await manager.get("courses:id:2") is None
    assert await manager.delete("classes:list") is True

    await manager.close()


@pytest.mark.asyncio
async def test_cache_response_decorator_skips_request_scoped_args():
    calls = []

    @cache_response("reports", ttl=60)
    async def handler(semester: str, db=None, current_user=None):
        calls.append(semester)
        return {"semester": semester, "calls": len(calls)}

    first = await handler(semester="Fall", db=object())
    second = await handler(semester="Fall", db=object())
    other = await handler(semester="Spring", db=object())

    assert first == second == {"semester": "Fall", "calls": 1}
    assert other["calls"] == 2
    assert metrics.hits == 1
    assert metrics.misses == 2
    assert await cache_manager.exists("reports:semester:Fall")


@pytest.mark.asyncio
async def test_invalidate_cache_pattern_runs_after_the_write():
    await cache_manager.set("calendar:event_type:None", [])
    await cache_manager.set("departments", [])

    @invalidate_cache_pattern("calendar")
    async def write():
        assert await cache_manager.exists("calendar:event_type:None")
        return "done"

    assert await write() == "done"
    assert not await cache_manager.exists("calendar:event_type:None")
    assert await cache_manager.exists("departments")


def test_cache_metrics_stats():
    metrics.record_hit(0.5)
    metrics.record_miss()

    stats = metrics.get_stats()

    assert stats["hit_rate_percent"] == 50.0
    assert stats["total_time_saved_seconds"] == 0.5

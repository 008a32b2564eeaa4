import asyncio

import pytest

from app.core import cache as cache_module
from app.core.cache import InMemoryCacheStore


@pytest.fixture
def store():
    return InMemoryCacheStore()


def test_get_set_delete(store):
    async def scenario():
        await store.set("k", "v")
        value = await store.get("k")
        deleted = await store.delete("k", "missing")
        return value, deleted, await store.get("k")

    assert asyncio.run(scenario()) == ("v", 1, None)


def test_ttl_expires_lazily(store, monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache_module.time, "monotonic", lambda: now[0])

    async def scenario():
        await store.set("presence", "online", ttl=10)
        before = await store.get("presence")
        now[0] += 11
        return before, await store.get("presence"), await store.keys("presence*")

    assert asyncio.run(scenario()) == ("online", None, [])


def test_incr_and_expire(store):
    async def scenario():
        await store.incr("hits")
        value = await store.incr("hits", 4)
        return value, await store.expire("hits", 30), await store.expire("missing", 30)

    assert asyncio.run(scenario()) == (5, True, False)


def test_sorted_set_operations(store):
    async def scenario():
        added = await store.zadd("ranking", {"a": 1, "b": 3, "c": 2})
        await store.zincrby("ranking", 5, "a")
        removed = await store.zrem("ranking", "c", "zz")
        ascending = await store.zrange("ranking", 0, -1)
        top = await store.zrange("ranking", 0, 0, desc=True, withscores=True)
        return added, removed, ascending, top, await store.zscore("ranking", "b")

    added, removed, ascending, top, score_b = asyncio.run(scenario())
    assert added == 3
    assert removed == 1
    assert ascending == ["b", "a"]
    assert top == [("a", 6.0)]
    assert score_b == 3.0


def test_keys_pattern(store):
    async def scenario():
        await store.set("presence:online:1", "online")
        await store.set("presence:online:2", "online")
        await store.set("otro", "x")
        return sorted(await store.keys("presence:online:*"))

    assert asyncio.run(scenario()) == ["presence:online:1", "presence:online:2"]


def test_factory_defaults_to_memory(monkeypatch):
    monkeypatch.setattr(cache_module, "_cache_store", None)
    assert isinstance(cache_module.get_cache_store(), InMemoryCacheStore)
    assert cache_module.get_cache_store() is cache_module.get_cache_store()

"""In-Memory Product Cache — TTL expiry and JSON round-trip.

Tests:
    - set/get round-trips JSON values
    - Entries expire after their TTL (fake clock, no sleeping)
    - Returned values are copies; mutating them leaves the cache intact
"""

from catalog.infrastructure.memory_cache import InMemoryProductCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


async def test_set_then_get_returns_value():
    cache = InMemoryProductCache()
    await cache.set("products:1", {"id": "1", "price": 9.5})
    assert await cache.get("products:1") == {"id": "1", "price": 9.5}


async def test_missing_key_is_none():
    assert await InMemoryProductCache().get("products:missing") is None


async def test_empty_list_is_a_hit():
    cache = InMemoryProductCache()
    await cache.set("products:list", [])
    assert await cache.get("products:list") == []


async def test_entry_expires_after_default_ttl():
    clock = FakeClock()
    cache = InMemoryProductCache(default_ttl_seconds=300, clock=clock)
    await cache.set("products:1", {"id": "1"})

    clock.now += 299
    assert await cache.get("products:1") == {"id": "1"}
    clock.now += 1
    assert await cache.get("products:1") is None
    assert "products:1" not in cache


async def test_explicit_ttl_overrides_default():
    clock = FakeClock()
    cache = InMemoryProductCache(default_ttl_seconds=300, clock=clock)
    await cache.set("products:1", {"id": "1"}, ttl_seconds=10)
    clock.now += 10
    assert await cache.get("products:1") is None


async def test_delete_removes_entry_and_tolerates_absent_key():
    cache = InMemoryProductCache()
    await cache.set("products:1", {"id": "1"})
    await cache.delete("products:1")
    await cache.delete("products:1")
    assert await cache.get("products:1") is None


async def test_returned_value_is_a_copy():
    cache = InMemoryProductCache()
    await cache.set("products:list", [{"id": "1"}])
    (await cache.get("products:list")).append({"id": "2"})
    assert await cache.get("products:list") == [{"id": "1"}]


async def test_unencodable_value_is_dropped_not_raised():
    cache = InMemoryProductCache()
    await cache.set("products:1", {"bad": object()})
    assert await cache.get("products:1") is None

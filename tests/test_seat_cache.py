import pytest
from types import SimpleNamespace

from libseat.services.seat_cache import (
    ALL_SEATS_KEY,
    RedisSeatListCache,
    SeatListCache,
    build_seat_cache,
    make_cache_key,
)
from tests.conftest import FakeTimer


class InMemoryRedisClient:
    """Stands in for RedisClient with the same async get/set/delete surface"""

    def __init__(self):
        self.values = {}
        self.ttls = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ttl):
        self.values[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys):
        for key in keys:
            self.values.pop(key, None)
        return True

    async def delete_pattern(self, pattern):
        prefix = pattern.rstrip("*")
        doomed = [key for key in self.values if key.startswith(prefix)]
        for key in doomed:
            del self.values[key]
        return len(doomed)


def test_cache_keys():
    assert make_cache_key(None) == ALL_SEATS_KEY
    assert make_cache_key(7) == "zone:7"


@pytest.mark.asyncio
async def test_entries_expire_after_ttl():
    timer = FakeTimer()
    cache = SeatListCache(ttl_seconds=3.0, timer=timer)

    await cache.set(1, [{"id": 1}])
    assert await cache.get(1) == [{"id": 1}]

    timer.advance(2.9)
    assert await cache.get(1) == [{"id": 1}]

    timer.advance(0.2)
    assert await cache.get(1) is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_oldest_entry_is_evicted():
    cache = SeatListCache(ttl_seconds=60, max_keys=2, timer=FakeTimer())

    await cache.set(1, ["one"])
    await cache.set(2, ["two"])
    await cache.set(3, ["three"])

    assert len(cache) == 2
    assert await cache.get(1) is None
    assert await cache.get(3) == ["three"]


@pytest.mark.asyncio
async def test_rewriting_a_key_makes_it_newest():
    cache = SeatListCache(ttl_seconds=60, max_keys=2, timer=FakeTimer())

    await cache.set(1, ["one"])
    await cache.set(2, ["two"])
    await cache.set(1, ["one again"])
    await cache.set(3, ["three"])

    assert await cache.get(2) is None
    assert await cache.get(1) == ["one again"]


@pytest.mark.asyncio
async def test_invalidate_zone_drops_zone_and_all_seats_entries():
    cache = SeatListCache(ttl_seconds=60, timer=FakeTimer())
    await cache.set(None, ["all"])
    await cache.set(1, ["zone 1"])
    await cache.set(2, ["zone 2"])

    await cache.invalidate(1)

    assert await cache.get(None) is None
    assert await cache.get(1) is None
    assert await cache.get(2) == ["zone 2"]


@pytest.mark.asyncio
async def test_invalidate_everything():
    cache = SeatListCache(ttl_seconds=60, timer=FakeTimer())
    await cache.set(1, ["zone 1"])
    await cache.set(2, ["zone 2"])

    await cache.invalidate()

    assert len(cache) == 0


@pytest.mark.asyncio
async def test_zero_ttl_disables_cache():
    cache = SeatListCache(ttl_seconds=0)
    await cache.set(1, ["zone 1"])
    assert not cache.enabled
    assert await cache.get(1) is None


@pytest.mark.asyncio
async def test_redis_backend_round_trip_and_invalidate():
    client = InMemoryRedisClient()
    cache = RedisSeatListCache(client, ttl_seconds=2.5)

    await cache.set(None, ["all"])
    await cache.set(4, ["zone 4"])
    await cache.set(5, ["zone 5"])
    assert client.ttls["seats:list:zone:4"] == 3
    assert await cache.get(4) == ["zone 4"]

    await cache.invalidate(4)
    assert await cache.get(4) is None
    assert await cache.get(None) is None
    assert await cache.get(5) == ["zone 5"]

    await cache.invalidate()
    assert client.values == {}


def test_build_seat_cache_selects_backend():
    memory = build_seat_cache(SimpleNamespace(
        SEATS_CACHE_BACKEND="memory", SEATS_CACHE_TTL_SECONDS=3.0, SEATS_CACHE_MAX_KEYS=16,
    ))
    assert isinstance(memory, SeatListCache)
    assert memory.max_keys == 16

    shared = build_seat_cache(
        SimpleNamespace(SEATS_CACHE_BACKEND="redis", SEATS_CACHE_TTL_SECONDS=3.0, REDIS_URL="redis://x"),
        client=InMemoryRedisClient(),
    )
    assert isinstance(shared, RedisSeatListCache)

    with pytest.raises(ValueError):
        build_seat_cache(SimpleNamespace(SEATS_CACHE_BACKEND="memcached"))

"""
Seat-list cache

Short-lived read-through cache for the computed seat map, keyed by zone
filter ("all" or "zone:<id>"). Every write that can change a seat's status
invalidates it before returning.
"""
import math
import time
from collections import OrderedDict
from typing import Any, Callable, List, Optional, Tuple

from libseat.core.metrics import seat_cache_hits_total, seat_cache_misses_total
from libseat.core.redis import RedisClient
import logging

logger = logging.getLogger(__name__)

ALL_SEATS_KEY = "all"


def make_cache_key(zone_id: Optional[int]) -> str:
    return ALL_SEATS_KEY if zone_id is None else f"zone:{zone_id}"


class SeatListCache:
    """In-process cache with TTL and oldest-entry eviction"""

    def __init__(
        self,
        ttl_seconds: float = 3.0,
        max_keys: int = 32,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_keys = max_keys
        self._timer = timer
        self._entries: "OrderedDict[str, Tuple[float, List[Any]]]" = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, zone_id: Optional[int]) -> Optional[List[Any]]:
        if not self.enabled:
            return None

        key = make_cache_key(zone_id)
        entry = self._entries.get(key)
        if entry is None:
            seat_cache_misses_total.inc()
            return None

        expires_at, data = entry
        if expires_at <= self._timer():
            del self._entries[key]
            seat_cache_misses_total.inc()
            return None

        seat_cache_hits_total.inc()
        return data

    async def set(self, zone_id: Optional[int], data: List[Any]) -> None:
        if not self.enabled:
            return

        key = make_cache_key(zone_id)
        self._entries.pop(key, None)
        self._entries[key] = (self._timer() + self.ttl_seconds, data)

        while len(self._entries) > self.max_keys:
            oldest_key, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted seat list cache entry {oldest_key}")

    async def invalidate(self, zone_id: Optional[int] = None) -> None:
        """Drop the zone's entry and the all-seats entry; no zone clears everything"""
        if zone_id is None:
            self._entries.clear()
            return
        self._entries.pop(make_cache_key(zone_id), None)
        self._entries.pop(ALL_SEATS_KEY, None)


class RedisSeatListCache:
    """Same contract as SeatListCache, shared between workers through Redis"""

    KEY_PREFIX = "seats:list:"

    def __init__(self, client: RedisClient, ttl_seconds: float = 3.0):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def _key(self, zone_id: Optional[int]) -> str:
        return self.KEY_PREFIX + make_cache_key(zone_id)

    async def get(self, zone_id: Optional[int]) -> Optional[List[Any]]:
        if not self.enabled:
            return None
        cached = await self.client.get(self._key(zone_id))
        if cached is None:
            seat_cache_misses_total.inc()
        else:
            seat_cache_hits_total.inc()
        return cached

    async def set(self, zone_id: Optional[int], data: List[Any]) -> None:
        if not self.enabled:
            return
        await self.client.set(self._key(zone_id), data, ttl=math.ceil(self.ttl_seconds))

    async def invalidate(self, zone_id: Optional[int] = None) -> None:
        if zone_id is None:
            await self.client.delete_pattern(self.KEY_PREFIX + "*")
            return
        await self.client.delete(self._key(zone_id), self._key(None))


def build_seat_cache(settings, client: Optional[RedisClient] = None):
    """Pick the cache backend named by SEATS_CACHE_BACKEND"""
    backend = settings.SEATS_CACHE_BACKEND.lower()
    if backend == "redis":
        return RedisSeatListCache(client or RedisClient(settings.REDIS_URL), settings.SEATS_CACHE_TTL_SECONDS)
    if backend != "memory":
        raise ValueError(f"Unknown SEATS_CACHE_BACKEND: {settings.SEATS_CACHE_BACKEND}")
    return SeatListCache(settings.SEATS_CACHE_TTL_SECONDS, settings.SEATS_CACHE_MAX_KEYS)

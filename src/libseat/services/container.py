"""
Service wiring

One Services instance per application: it owns the unit of work, the
seat-list cache and the clock, and hands the same instances to every
service so cache invalidation and seat locks are shared.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libseat.core.clock import Clock, system_clock
from libseat.core.config import Settings, settings as default_settings
from libseat.core.redis import RedisClient
from libseat.services.admin_service import AdminService
from libseat.services.expiry_worker import ExpiryWorker
from libseat.services.lifecycle_service import ExpirySweeper, LifecycleService
from libseat.services.policy import ReservationPolicy
from libseat.services.reservation_service import ReservationService
from libseat.services.seat_cache import build_seat_cache
from libseat.services.seat_status import SeatStatusResolver
from libseat.services.store import UnitOfWork


class Services:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings = default_settings,
        clock: Clock = system_clock,
        cache=None,
        redis_client: Optional[RedisClient] = None,
    ):
        self.settings = settings
        self.clock = clock
        self.policy = ReservationPolicy.from_settings(settings)
        self.uow = UnitOfWork(session_factory)
        self.cache = cache if cache is not None else build_seat_cache(settings, redis_client)

        self.lifecycle = LifecycleService(self.uow, self.cache, clock, self.policy)
        self.sweeper = ExpirySweeper(self.lifecycle, settings.PENDING_CLEANUP_INTERVAL_SECONDS)
        self.resolver = SeatStatusResolver(self.uow, self.cache, clock, self.policy, self.sweeper)
        self.reservations = ReservationService(self.uow, self.cache, clock, self.policy, self.sweeper)
        self.admin = AdminService(self.uow, self.cache)
        self.expiry_worker = ExpiryWorker(self.lifecycle, settings.PENDING_CLEANUP_INTERVAL_SECONDS)

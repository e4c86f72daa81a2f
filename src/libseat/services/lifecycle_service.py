"""
Reservation lifecycle transitions

pending -> active      check-in inside the window
pending -> cancelled   late check-in, explicit cancel, expiry sweep, early finish
active  -> completed   finish
active  -> cancelled   cancel

Each transition commits in its own transaction and invalidates the seat-list
cache after the commit.
"""
import asyncio
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from libseat.core.clock import Clock, diff_minutes, system_clock, to_civil
from libseat.core.metrics import reservation_transitions_total, reservations_expired_total
from libseat.models import Reservation, ReservationStatus, OPEN_STATUSES
from libseat.services.errors import (
    CheckinExpiredError,
    InvalidTransitionError,
    PermissionDeniedError,
    TooEarlyError,
)
from libseat.services.policy import ReservationPolicy, pending_expiry_cutoff
from libseat.services.seat_cache import SeatListCache
from libseat.services.store import ReservationStore, UnitOfWork
import logging

logger = logging.getLogger(__name__)


def _ensure_owner(reservation: Reservation, user_id: int, is_admin: bool = False) -> None:
    if is_admin:
        return
    if reservation.user_id != user_id:
        raise PermissionDeniedError()


async def _zone_of(store: ReservationStore, seat_id: int) -> Optional[int]:
    seat = await store.get_seat(seat_id)
    return seat.zone_id if seat is not None else None


class LifecycleService:
    """Check-in, finish, cancel, delete and the pending-expiry sweep"""

    def __init__(
        self,
        uow: UnitOfWork,
        cache: SeatListCache,
        clock: Clock = system_clock,
        policy: Optional[ReservationPolicy] = None,
    ):
        self.uow = uow
        self.cache = cache
        self.clock = clock
        self.policy = policy or ReservationPolicy.from_settings()

    async def check_in(self, reservation_id: int, user_id: int) -> Reservation:
        """
        Activate a pending reservation.

        Allowed from ``checkin_window_minutes`` before the start until the
        same amount after it. A late check-in cancels the reservation (and
        that cancellation is committed) before CheckinExpiredError is raised.
        """
        now = self.clock.now()
        window = self.policy.checkin_window_minutes
        expired = False

        async with self.uow.transaction() as store:
            reservation = await store.get_reservation(reservation_id, for_update=True)
            _ensure_owner(reservation, user_id)

            if reservation.status != ReservationStatus.PENDING:
                raise InvalidTransitionError(
                    f"Only pending reservations can check in (current: {reservation.status.value})"
                )

            elapsed = to_civil(now) - to_civil(reservation.start_time)
            minutes = diff_minutes(now, reservation.start_time)
            if elapsed < -timedelta(minutes=window):
                raise TooEarlyError(f"Check-in opens {window} minutes before the start time")

            if elapsed > timedelta(minutes=window):
                await store.update_status(reservation, ReservationStatus.CANCELLED)
                expired = True
            else:
                await store.update_status(reservation, ReservationStatus.ACTIVE)
            zone_id = await _zone_of(store, reservation.seat_id)

        await self.cache.invalidate(zone_id)

        if expired:
            reservation_transitions_total.labels(transition="checkin_expired").inc()
            logger.info(f"⏰ Reservation {reservation_id} cancelled: check-in {minutes} minutes after start")
            raise CheckinExpiredError()

        reservation_transitions_total.labels(transition="checkin").inc()
        logger.info(f"✅ Reservation {reservation_id} checked in by user {user_id}")
        return reservation

    async def finish(self, reservation_id: int, user_id: int) -> Reservation:
        """Release the seat; a reservation finished at or before its start is cancelled instead"""
        now = self.clock.now()

        async with self.uow.transaction() as store:
            reservation = await store.get_reservation(reservation_id, for_update=True)
            _ensure_owner(reservation, user_id)

            if reservation.status not in OPEN_STATUSES:
                raise InvalidTransitionError(
                    f"Reservation is already {reservation.status.value}"
                )

            if now <= reservation.start_time:
                await store.update_status(reservation, ReservationStatus.CANCELLED)
                transition = "finish_early"
            else:
                await store.update_status(reservation, ReservationStatus.COMPLETED, end_time=now)
                transition = "finish"
            zone_id = await _zone_of(store, reservation.seat_id)

        await self.cache.invalidate(zone_id)
        reservation_transitions_total.labels(transition=transition).inc()
        logger.info(f"✅ Reservation {reservation_id} {reservation.status.value} by user {user_id}")
        return reservation

    async def cancel(self, reservation_id: int, user_id: int, is_admin: bool = False) -> Reservation:
        async with self.uow.transaction() as store:
            reservation = await store.get_reservation(reservation_id, for_update=True)
            _ensure_owner(reservation, user_id, is_admin)

            if reservation.status not in OPEN_STATUSES:
                raise InvalidTransitionError(
                    f"Only pending or active reservations can be cancelled (current: {reservation.status.value})"
                )

            await store.update_status(reservation, ReservationStatus.CANCELLED)
            zone_id = await _zone_of(store, reservation.seat_id)

        await self.cache.invalidate(zone_id)
        reservation_transitions_total.labels(transition="cancel").inc()
        logger.info(f"✅ Reservation {reservation_id} cancelled")
        return reservation

    async def delete(self, reservation_id: int, user_id: int, is_admin: bool = False) -> None:
        """Remove a reservation record; an active one must be finished first"""
        async with self.uow.transaction() as store:
            reservation = await store.get_reservation(reservation_id, for_update=True)
            _ensure_owner(reservation, user_id, is_admin)

            if reservation.status == ReservationStatus.ACTIVE:
                raise InvalidTransitionError("Active reservations cannot be deleted; finish it first")

            zone_id = await _zone_of(store, reservation.seat_id)
            await store.delete_reservation(reservation)

        await self.cache.invalidate(zone_id)
        logger.info(f"🗑️ Reservation {reservation_id} deleted")

    async def expire_pending(self, now: Optional[datetime] = None) -> List[int]:
        """Cancel every pending reservation whose check-in window has passed"""
        current_time = now or self.clock.now()
        cutoff = pending_expiry_cutoff(current_time, self.policy.checkin_window_minutes)

        async with self.uow.transaction() as store:
            expired_ids = await store.cancel_expired_pending(cutoff)

        if expired_ids:
            await self.cache.invalidate()
            reservations_expired_total.inc(len(expired_ids))
            logger.info(f"⏰ Expired {len(expired_ids)} pending reservations: {expired_ids}")
        return expired_ids


class ExpirySweeper:
    """
    Runs LifecycleService.expire_pending at most once per interval.

    Read paths call maybe_run() before computing anything status-sensitive,
    so the database is swept lazily even without the background worker.
    """

    def __init__(
        self,
        lifecycle: LifecycleService,
        interval_seconds: float = 60.0,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.lifecycle = lifecycle
        self.interval_seconds = interval_seconds
        self._timer = timer
        self._last_run: Optional[float] = None
        self._lock = asyncio.Lock()

    def _due(self) -> bool:
        if self.interval_seconds <= 0 or self._last_run is None:
            return True
        return self._timer() - self._last_run >= self.interval_seconds

    async def maybe_run(self) -> bool:
        """True when a sweep actually ran"""
        if not self._due():
            return False

        async with self._lock:
            if not self._due():
                return False
            self._last_run = self._timer()
            await self.lifecycle.expire_pending()
            return True

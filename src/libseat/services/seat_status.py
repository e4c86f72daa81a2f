"""
Seat status resolver

Computes the display status of a seat (free / limited / occupied / locked)
from the pending and active reservations that touch it. The decision is a
pure function of (is_available, reservations, now, policy); the resolver
class only loads the inputs and caches seat-list results.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from libseat.core.clock import Clock, add_hours, add_minutes, diff_minutes, format_time, system_clock, to_civil
from libseat.models import Reservation, Seat, OPEN_STATUSES
from libseat.schemas.seat import DisplayStatus, SeatWithStatus
from libseat.services.policy import ReservationPolicy
from libseat.services.seat_cache import SeatListCache
from libseat.services.store import ReservationStore, UnitOfWork
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationWindow:
    """The parts of a reservation the status computation looks at"""
    id: Optional[int]
    start_time: datetime
    end_time: datetime

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "ReservationWindow":
        return cls(reservation.id, to_civil(reservation.start_time), to_civil(reservation.end_time))


@dataclass(frozen=True)
class SeatStatusInfo:
    display_status: DisplayStatus
    message: str
    available_until: Optional[datetime] = None
    next_reservation_at: Optional[datetime] = None
    available_minutes: Optional[int] = None
    current_occupant: Optional[ReservationWindow] = None
    next_reservation: Optional[ReservationWindow] = None
    minutes_until_next: Optional[int] = None


def resolve_status(
    seat_is_available: bool,
    reservations: Iterable[Reservation],
    now: datetime,
    policy: ReservationPolicy,
) -> SeatStatusInfo:
    """
    Decide a seat's display status at ``now``.

    Only pending and active reservations count. A seat is locked when the
    administrator disabled it or when the next reservation inside the
    lookahead horizon starts within ``min_available_minutes``; it is limited
    when that reservation is further away, and usable until
    ``buffer_minutes`` before it starts.
    """
    if not seat_is_available:
        return SeatStatusInfo(DisplayStatus.LOCKED, "Seat has been disabled by an administrator")

    now = to_civil(now)
    horizon = add_hours(now, policy.lookahead_hours)
    windows = sorted(
        (ReservationWindow.from_reservation(r) for r in reservations if r.status in OPEN_STATUSES),
        key=lambda w: w.start_time,
    )

    for window in windows:
        if window.start_time <= now < window.end_time:
            return SeatStatusInfo(
                DisplayStatus.OCCUPIED,
                f"In use until {format_time(window.end_time)}",
                current_occupant=window,
            )

    upcoming = next((w for w in windows if now < w.start_time <= horizon), None)
    if upcoming is None:
        return SeatStatusInfo(DisplayStatus.FREE, "Available for the rest of the day")

    minutes_until_next = diff_minutes(upcoming.start_time, now)
    if minutes_until_next <= policy.min_available_minutes:
        return SeatStatusInfo(
            DisplayStatus.LOCKED,
            f"Reserved from {format_time(upcoming.start_time)}, starts in {minutes_until_next} minutes",
            next_reservation_at=upcoming.start_time,
            next_reservation=upcoming,
            minutes_until_next=minutes_until_next,
        )

    available_until = add_minutes(upcoming.start_time, -policy.buffer_minutes)
    return SeatStatusInfo(
        DisplayStatus.LIMITED,
        f"Available until {format_time(available_until)}",
        available_until=available_until,
        next_reservation_at=upcoming.start_time,
        available_minutes=diff_minutes(available_until, now),
        next_reservation=upcoming,
        minutes_until_next=minutes_until_next,
    )


async def load_seat_status(
    store: ReservationStore,
    seat: Seat,
    now: datetime,
    policy: ReservationPolicy,
) -> SeatStatusInfo:
    """Resolve one seat from its current occupant and next reservation"""
    if not seat.is_available:
        return resolve_status(False, (), now, policy)

    current = await store.current_reservation(seat.id, now)
    if current is not None:
        return resolve_status(True, [current], now, policy)

    upcoming = await store.next_reservation(seat.id, now, add_hours(now, policy.lookahead_hours))
    return resolve_status(True, [upcoming] if upcoming else [], now, policy)


def seat_with_status(seat: Seat, info: SeatStatusInfo) -> SeatWithStatus:
    return SeatWithStatus(
        id=seat.id,
        seat_number=seat.seat_number,
        zone_id=seat.zone_id,
        is_available=seat.is_available,
        x=seat.x,
        y=seat.y,
        rotation=seat.rotation,
        seat_type=seat.seat_type,
        facilities=seat.facilities,
        note=seat.note,
        display_status=info.display_status,
        available_until=info.available_until,
        next_reservation_at=info.next_reservation_at,
    )


class SeatStatusResolver:
    """Loads seats and their reservations and applies resolve_status"""

    def __init__(
        self,
        uow: UnitOfWork,
        cache: SeatListCache,
        clock: Clock = system_clock,
        policy: Optional[ReservationPolicy] = None,
        sweeper=None,
    ):
        self.uow = uow
        self.cache = cache
        self.clock = clock
        self.policy = policy or ReservationPolicy.from_settings()
        self.sweeper = sweeper

    async def _sweep(self) -> None:
        if self.sweeper is not None:
            await self.sweeper.maybe_run()

    async def seat_availability(self, seat_id: int) -> SeatStatusInfo:
        await self._sweep()
        async with self.uow.read() as store:
            seat = await store.get_seat(seat_id, required=True)
            return await load_seat_status(store, seat, self.clock.now(), self.policy)

    async def list_seats(self, zone_id: Optional[int] = None) -> List[SeatWithStatus]:
        """
        Seat map for one zone (or all zones).

        Exactly two queries on a miss: the seats, then every current or
        future open reservation for those seats.
        """
        await self._sweep()

        cached = await self.cache.get(zone_id)
        if cached is not None:
            return [SeatWithStatus.model_validate(item) for item in cached]

        now = self.clock.now()
        async with self.uow.read() as store:
            seats: Sequence[Seat] = await store.list_seats(zone_id)
            grouped: Dict[int, List[Reservation]] = await store.reservations_for_seats(
                [seat.id for seat in seats], now
            )

        items = [
            seat_with_status(seat, resolve_status(seat.is_available, grouped.get(seat.id, ()), now, self.policy))
            for seat in seats
        ]
        await self.cache.set(zone_id, [item.model_dump(mode="json") for item in items])
        logger.debug(f"Computed status for {len(items)} seats (zone={zone_id})")
        return items

"""
Reservation admission and reservation queries

Admission checks run inside one transaction scoped to the seat and the user:
the seat row is locked, the user's quota is counted under a per-user lock,
the overlap check is repeated against the database and the new reservation
is inserted before the locks are released. Concurrent requests
for the same seat therefore see each other's inserts, and the loser gets
SlotConflictError instead of a double booking.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from libseat.core.clock import (
    Clock,
    add_days,
    end_of_day,
    format_time,
    parse_date,
    start_of_day,
    system_clock,
    to_civil,
)
from libseat.core.metrics import (
    reservation_admission_duration_seconds,
    reservation_rejections_total,
    reservations_created_total,
    slot_conflicts_total,
    track_time,
)
from libseat.models import Reservation, ReservationType, OPEN_STATUSES
from libseat.schemas.seat import DisplayStatus, SeatTimelineEntry
from libseat.services.errors import (
    AdvanceWindowClosedError,
    ConflictDetected,
    InvalidAdvanceWindowError,
    InvalidTransitionError,
    PermissionDeniedError,
    QuotaExceededError,
    ReservationError,
    SeatLockedError,
    SeatNotFoundError,
    SeatOccupiedError,
    SeatUnavailableError,
    SlotConflictError,
    ValidationError,
    ZoneInactiveError,
)
from libseat.services.policy import ReservationPolicy
from libseat.services.seat_cache import SeatListCache
from libseat.services.seat_status import load_seat_status
from libseat.services.store import ReservationStore, UnitOfWork
import logging

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


@dataclass
class AdmissionResult:
    reservation: Reservation
    message: str
    is_limited: bool = False
    is_advance: bool = False


class ReservationService:
    """Creates, adjusts and reads reservations"""

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

    @track_time(reservation_admission_duration_seconds)
    async def create_reservation(
        self,
        seat_id: int,
        user_id: int,
        reservation_type: Union[ReservationType, str] = ReservationType.WALK_IN,
        start_time: Optional[datetime] = None,
    ) -> AdmissionResult:
        """
        Create a pending reservation.

        Preconditions are checked in order: seat exists and is enabled, its
        zone is active, the user is under quota. Walk-ins start now and end
        at the end of the day, or before the next reservation's buffer when
        the seat is limited. Advance reservations can only be made from the
        opening hour onward and must start tomorrow.
        """
        reservation_type = ReservationType(reservation_type)
        if self.sweeper is not None:
            await self.sweeper.maybe_run()

        try:
            result, zone_id = await self._admit(seat_id, user_id, reservation_type, start_time)
        except ConflictDetected:
            slot_conflicts_total.inc()
            reservation_rejections_total.labels(code=SlotConflictError.code).inc()
            logger.info(f"Seat {seat_id}: concurrent admission lost the race")
            raise SlotConflictError()
        except ReservationError as e:
            if isinstance(e, SlotConflictError):
                slot_conflicts_total.inc()
            reservation_rejections_total.labels(code=e.code).inc()
            logger.info(f"Reservation rejected for user {user_id} on seat {seat_id}: {e.code}")
            raise

        await self.cache.invalidate(zone_id)
        reservations_created_total.labels(reservation_type=reservation_type.value).inc()
        logger.info(
            f"✅ Reservation {result.reservation.id} created: seat {seat_id}, user {user_id}, "
            f"{reservation_type.value} {format_time(result.reservation.start_time)}-"
            f"{format_time(result.reservation.end_time)}"
        )
        return result

    async def _admit(
        self,
        seat_id: int,
        user_id: int,
        reservation_type: ReservationType,
        start_time: Optional[datetime],
    ) -> Tuple[AdmissionResult, int]:
        now = to_civil(self.clock.now())

        async with self.uow.transaction(seat_id, user_id=user_id) as store:
            seat = await store.lock_seat(seat_id)
            if seat is None:
                raise SeatNotFoundError(f"Seat {seat_id} not found")
            if not seat.is_available:
                raise SeatUnavailableError()

            zone = await store.get_zone(seat.zone_id, required=True)
            if not zone.is_active:
                raise ZoneInactiveError()

            open_count = await store.count_open_for_user(user_id)
            if open_count >= self.policy.max_open_per_user:
                raise QuotaExceededError(
                    f"You already hold {open_count} active reservations "
                    f"(limit {self.policy.max_open_per_user})"
                )

            if reservation_type == ReservationType.WALK_IN:
                start, end, is_limited, message = await self._walk_in_window(store, seat, now)
            else:
                start, end = self._advance_window(start_time, now)
                is_limited = False
                message = f"Please check in tomorrow at {format_time(start)}"

            if start >= end:
                raise SeatLockedError("No time left on this seat today")

            overlapping = await store.find_overlapping(seat_id, start, end)
            if overlapping is not None:
                raise SlotConflictError()

            reservation = await store.insert_reservation(
                seat_id=seat_id,
                user_id=user_id,
                start_time=start,
                end_time=end,
                reservation_type=reservation_type,
            )

        result = AdmissionResult(
            reservation=reservation,
            message=message,
            is_limited=is_limited,
            is_advance=reservation_type == ReservationType.ADVANCE,
        )
        return result, seat.zone_id

    async def _walk_in_window(self, store: ReservationStore, seat, now: datetime):
        info = await load_seat_status(store, seat, now, self.policy)

        if info.display_status == DisplayStatus.OCCUPIED:
            raise SeatOccupiedError(info.message)
        if info.display_status == DisplayStatus.LOCKED:
            raise SeatLockedError(
                f"Next reservation starts in {info.minutes_until_next} minutes; "
                f"walk-ins need at least {self.policy.min_available_minutes}"
            )

        if info.display_status == DisplayStatus.LIMITED and info.available_until is not None:
            end = info.available_until
            return now, end, True, f"Seat is yours until {format_time(end)}; please leave by then"

        return (
            now,
            end_of_day(now),
            False,
            f"Please check in within {self.policy.checkin_window_minutes} minutes",
        )

    def _advance_window(self, start_time: Optional[datetime], now: datetime) -> Tuple[datetime, datetime]:
        if start_time is None:
            raise ValidationError("start_time is required for advance reservations")

        if now.hour < self.policy.advance_open_hour:
            raise AdvanceWindowClosedError(
                f"Advance booking opens at {self.policy.advance_open_hour:02d}:00"
            )

        tomorrow = add_days(now, 1)
        window_start, window_end = start_of_day(tomorrow), end_of_day(tomorrow)
        start = to_civil(start_time)
        if not window_start <= start < window_end:
            raise InvalidAdvanceWindowError()
        return start, window_end

    async def adjust_reservation(
        self,
        reservation_id: int,
        user_id: int,
        start_time: datetime,
        end_time: datetime,
        is_admin: bool = False,
    ) -> Reservation:
        """Move an open reservation to a new time range on the same seat"""
        start, end = to_civil(start_time), to_civil(end_time)
        if start >= end:
            raise ValidationError("start_time must be before end_time")

        async with self.uow.read() as store:
            seat_id = (await store.get_reservation(reservation_id)).seat_id

        try:
            async with self.uow.transaction(seat_id) as store:
                await store.lock_seat(seat_id)
                reservation = await store.get_reservation(reservation_id, for_update=True)
                if not is_admin and reservation.user_id != user_id:
                    raise PermissionDeniedError()
                if reservation.status not in OPEN_STATUSES:
                    raise InvalidTransitionError(
                        f"Only pending or active reservations can be adjusted (current: {reservation.status.value})"
                    )

                overlapping = await store.find_overlapping(seat_id, start, end, exclude_id=reservation.id)
                if overlapping is not None:
                    raise SlotConflictError()

                await store.update_time_range(reservation, start, end)
                zone_id = (await store.get_seat(seat_id, required=True)).zone_id
        except ConflictDetected:
            slot_conflicts_total.inc()
            raise SlotConflictError()

        await self.cache.invalidate(zone_id)
        logger.info(
            f"✅ Reservation {reservation_id} moved to {format_time(start)}-{format_time(end)}"
        )
        return reservation

    async def get_reservation(self, reservation_id: int, user_id: int, is_admin: bool = False) -> Reservation:
        async with self.uow.read() as store:
            reservation = await store.get_reservation(reservation_id, with_seat=True)
        if not is_admin and reservation.user_id != user_id:
            raise PermissionDeniedError()
        return reservation

    async def list_reservations(
        self,
        user_id: int,
        is_admin: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[Sequence[Reservation], int, int, int]:
        """Newest first; administrators see every user's reservations"""
        page = max(1, page)
        page_size = min(max(1, page_size), MAX_PAGE_SIZE)

        async with self.uow.read() as store:
            items, total = await store.list_reservations(
                None if is_admin else user_id,
                offset=(page - 1) * page_size,
                limit=page_size,
            )
        return items, total, page, page_size

    async def seat_timeline(
        self,
        seat_id: int,
        day: Union[str, datetime, None] = None,
        user_id: Optional[int] = None,
    ) -> List[SeatTimelineEntry]:
        """Open reservations touching the seat's civil day"""
        if isinstance(day, str):
            day = parse_date(day)
        day = day or self.clock.now()

        async with self.uow.read() as store:
            await store.get_seat(seat_id, required=True)
            rows = await store.reservations_for_seat_between(seat_id, start_of_day(day), end_of_day(day))

        return [
            SeatTimelineEntry(
                id=r.id,
                start_time=r.start_time,
                end_time=r.end_time,
                status=r.status,
                is_mine=user_id is not None and r.user_id == user_id,
            )
            for r in rows
        ]

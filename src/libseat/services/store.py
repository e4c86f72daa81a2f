"""
Reservation store and unit of work

ReservationStore wraps one AsyncSession and exposes the time-range queries the
engine needs. UnitOfWork is the explicit transaction boundary: it serializes
work on the same seat and commits or rolls back as a whole.
"""
import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from libseat.models import Seat, Zone, Reservation, ReservationStatus, ReservationType, OPEN_STATUSES
from libseat.services.errors import (
    ConflictDetected,
    SeatNotFoundError,
    ZoneNotFoundError,
    ReservationNotFoundError,
)
import logging

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected, lock_not_available
_CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}

# First key of the two-key advisory lock taken per user on PostgreSQL
USER_LOCK_NAMESPACE = 7301


def is_conflict_error(exc: DBAPIError) -> bool:
    """True when the database rejected us because a concurrent transaction won"""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in _CONFLICT_SQLSTATES:
        return True
    return "database is locked" in str(orig)


class ReservationStore:
    """Queries and writes for zones, seats and reservations on one session"""

    def __init__(self, session: AsyncSession):
        self.session = session

    # ==================== Zones & seats ====================

    async def get_zone(self, zone_id: int, required: bool = False) -> Optional[Zone]:
        zone = await self.session.get(Zone, zone_id)
        if zone is None and required:
            raise ZoneNotFoundError(f"Zone {zone_id} not found")
        return zone

    async def list_zones(self) -> Sequence[Zone]:
        result = await self.session.execute(select(Zone).order_by(Zone.floor, Zone.name))
        return result.scalars().all()

    async def get_seat(self, seat_id: int, required: bool = False) -> Optional[Seat]:
        seat = await self.session.get(Seat, seat_id)
        if seat is None and required:
            raise SeatNotFoundError(f"Seat {seat_id} not found")
        return seat

    async def lock_seat(self, seat_id: int) -> Optional[Seat]:
        """Row-lock the seat so admissions on it run one at a time"""
        query = (
            select(Seat)
            .where(Seat.id == seat_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def lock_user(self, user_id: int) -> None:
        """
        Transaction-scoped lock on the user's admissions.

        PostgreSQL gets an advisory lock so other processes wait too. SQLite
        allows one writer at a time, and a losing writer surfaces as
        ConflictDetected.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        await self.session.execute(
            select(func.pg_advisory_xact_lock(USER_LOCK_NAMESPACE, user_id))
        )

    async def list_seats(self, zone_id: Optional[int] = None) -> Sequence[Seat]:
        query = select(Seat).order_by(Seat.id)
        if zone_id is not None:
            query = query.where(Seat.zone_id == zone_id)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count_reservations_for_seat(self, seat_id: int) -> int:
        query = select(func.count(Reservation.id)).where(Reservation.seat_id == seat_id)
        return (await self.session.execute(query)).scalar() or 0

    async def delete_seat(self, seat: Seat) -> None:
        await self.session.delete(seat)
        await self.session.flush()

    # ==================== Reservation reads ====================

    async def get_reservation(
        self,
        reservation_id: int,
        for_update: bool = False,
        with_seat: bool = False,
    ) -> Reservation:
        query = select(Reservation).where(Reservation.id == reservation_id)
        if with_seat:
            query = query.options(selectinload(Reservation.seat).selectinload(Seat.zone))
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        reservation = result.scalar_one_or_none()
        if reservation is None:
            raise ReservationNotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    async def find_overlapping(
        self,
        seat_id: int,
        start: datetime,
        end: datetime,
        statuses: Iterable[ReservationStatus] = OPEN_STATUSES,
        exclude_id: Optional[int] = None,
    ) -> Optional[Reservation]:
        """First reservation on the seat whose interval overlaps [start, end)"""
        query = select(Reservation).where(
            Reservation.seat_id == seat_id,
            Reservation.status.in_(list(statuses)),
            Reservation.start_time < end,
            Reservation.end_time > start,
        )
        if exclude_id is not None:
            query = query.where(Reservation.id != exclude_id)
        result = await self.session.execute(query.order_by(Reservation.start_time).limit(1))
        return result.scalar_one_or_none()

    async def current_reservation(self, seat_id: int, at: datetime) -> Optional[Reservation]:
        query = (
            select(Reservation)
            .where(
                Reservation.seat_id == seat_id,
                Reservation.status.in_(OPEN_STATUSES),
                Reservation.start_time <= at,
                Reservation.end_time > at,
            )
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def next_reservation(
        self,
        seat_id: int,
        after: datetime,
        horizon: datetime,
    ) -> Optional[Reservation]:
        query = (
            select(Reservation)
            .where(
                Reservation.seat_id == seat_id,
                Reservation.status.in_(OPEN_STATUSES),
                Reservation.start_time > after,
                Reservation.start_time <= horizon,
            )
            .order_by(Reservation.start_time)
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def reservations_for_seats(
        self,
        seat_ids: Sequence[int],
        at: datetime,
    ) -> Dict[int, List[Reservation]]:
        """
        Every open reservation not yet ended for the given seats, in one query,
        grouped by seat id and ordered by start time.
        """
        grouped: Dict[int, List[Reservation]] = {}
        if not seat_ids:
            return grouped
        query = (
            select(Reservation)
            .where(
                Reservation.seat_id.in_(list(seat_ids)),
                Reservation.status.in_(OPEN_STATUSES),
                Reservation.end_time > at,
            )
            .order_by(Reservation.start_time)
        )
        result = await self.session.execute(query)
        for reservation in result.scalars().all():
            grouped.setdefault(reservation.seat_id, []).append(reservation)
        return grouped

    async def reservations_for_seat_between(
        self,
        seat_id: int,
        day_start: datetime,
        day_end: datetime,
    ) -> Sequence[Reservation]:
        query = (
            select(Reservation)
            .where(
                Reservation.seat_id == seat_id,
                Reservation.status.in_(OPEN_STATUSES),
                Reservation.end_time >= day_start,
                Reservation.start_time <= day_end,
            )
            .order_by(Reservation.start_time)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count_open_for_user(self, user_id: int) -> int:
        query = select(func.count(Reservation.id)).where(
            Reservation.user_id == user_id,
            Reservation.status.in_(OPEN_STATUSES),
        )
        return (await self.session.execute(query)).scalar() or 0

    async def list_reservations(
        self,
        user_id: Optional[int],
        offset: int,
        limit: int,
    ) -> Tuple[Sequence[Reservation], int]:
        """Newest first; user_id None lists every user's reservations"""
        query = select(Reservation)
        count_query = select(func.count(Reservation.id))
        if user_id is not None:
            query = query.where(Reservation.user_id == user_id)
            count_query = count_query.where(Reservation.user_id == user_id)

        total = (await self.session.execute(count_query)).scalar() or 0

        query = (
            query.options(selectinload(Reservation.seat).selectinload(Seat.zone))
            .order_by(Reservation.created_at.desc(), Reservation.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return result.scalars().all(), total

    # ==================== Reservation writes ====================

    async def insert_reservation(
        self,
        seat_id: int,
        user_id: int,
        start_time: datetime,
        end_time: datetime,
        reservation_type: ReservationType,
        status: ReservationStatus = ReservationStatus.PENDING,
    ) -> Reservation:
        reservation = Reservation(
            seat_id=seat_id,
            user_id=user_id,
            start_time=start_time,
            end_time=end_time,
            status=status,
            reservation_type=reservation_type,
        )
        self.session.add(reservation)
        await self.session.flush()
        return reservation

    async def update_status(
        self,
        reservation: Reservation,
        status: ReservationStatus,
        end_time: Optional[datetime] = None,
    ) -> Reservation:
        reservation.status = status
        if end_time is not None:
            reservation.end_time = end_time
        await self.session.flush()
        return reservation

    async def update_time_range(
        self,
        reservation: Reservation,
        start_time: datetime,
        end_time: datetime,
    ) -> Reservation:
        reservation.start_time = start_time
        reservation.end_time = end_time
        await self.session.flush()
        return reservation

    async def delete_reservation(self, reservation: Reservation) -> None:
        await self.session.execute(delete(Reservation).where(Reservation.id == reservation.id))

    async def cancel_expired_pending(self, cutoff: datetime) -> List[int]:
        """Cancel pending reservations that started before cutoff; returns their ids"""
        query = select(Reservation.id).where(
            Reservation.status == ReservationStatus.PENDING,
            Reservation.start_time < cutoff,
        )
        expired_ids = list((await self.session.execute(query)).scalars().all())
        if not expired_ids:
            return expired_ids

        statement = (
            update(Reservation)
            .where(
                Reservation.id.in_(expired_ids),
                Reservation.status == ReservationStatus.PENDING,
            )
            .values(status=ReservationStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(statement)
        return expired_ids


class KeyedLocks:
    """
    One asyncio.Lock per key, created on first use and dropped once the last
    holder or waiter lets go.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._holders: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]


class UnitOfWork:
    """
    Explicit transaction boundary around the store.

    Work scoped to a seat is serialized twice: by an in-process lock per seat
    id (different seats never wait on each other) and by the seat row lock
    the admission path takes inside the transaction, which covers other
    processes sharing the database. Admissions are also serialized per user
    so the open-reservation quota is counted and consumed atomically. The
    user lock is always taken before the seat lock.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory
        self._seat_locks = KeyedLocks()
        self._user_locks = KeyedLocks()

    @asynccontextmanager
    async def transaction(
        self,
        seat_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> AsyncIterator[ReservationStore]:
        async with AsyncExitStack() as stack:
            if user_id is not None:
                await stack.enter_async_context(self._user_locks.hold(user_id))
            if seat_id is not None:
                await stack.enter_async_context(self._seat_locks.hold(seat_id))
            store = await stack.enter_async_context(self._begin())
            if user_id is not None:
                await store.lock_user(user_id)
            yield store

    @asynccontextmanager
    async def _begin(self) -> AsyncIterator[ReservationStore]:
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    yield ReservationStore(session)
            except DBAPIError as e:
                if is_conflict_error(e):
                    logger.warning(f"⚠️ Concurrent transaction conflict: {e.orig}")
                    raise ConflictDetected(str(e.orig)) from e
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[ReservationStore]:
        """Read-only session; nothing is committed"""
        async with self.session_factory() as session:
            yield ReservationStore(session)

"""
Concurrency test: verify no double booking when many users race for one seat
"""
import asyncio
import pytest
from sqlalchemy import select, func

from libseat.models import Reservation, ReservationStatus, ReservationType, OPEN_STATUSES
from libseat.services.errors import QuotaExceededError, SeatNotFoundError, SeatOccupiedError, SlotConflictError
from tests.conftest import civil

NUM_USERS = 20


async def count_open(session_factory, seat_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count(Reservation.id)).where(
                Reservation.seat_id == seat_id,
                Reservation.status.in_(OPEN_STATUSES),
            )
        )
        return result.scalar()


@pytest.mark.asyncio
async def test_concurrent_walk_ins_admit_exactly_one(services, library, session_factory):
    attempts = [
        services.reservations.create_reservation(library.seat.id, user_id, ReservationType.WALK_IN)
        for user_id in range(1, NUM_USERS + 1)
    ]

    results = await asyncio.gather(*attempts, return_exceptions=True)

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert all(isinstance(f, (SlotConflictError, SeatOccupiedError)) for f in failures)
    assert await count_open(session_factory, library.seat.id) == 1


@pytest.mark.asyncio
async def test_concurrent_advance_reservations_for_same_slot(services, library, clock, session_factory):
    clock.set(civil(2026, 2, 10, 21, 0))
    start = civil(2026, 2, 11, 9, 0)

    results = await asyncio.gather(
        *[
            services.reservations.create_reservation(
                library.seat.id, user_id, ReservationType.ADVANCE, start_time=start
            )
            for user_id in range(1, NUM_USERS + 1)
        ],
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    assert len(successes) == 1
    assert sum(isinstance(r, SlotConflictError) for r in results) == NUM_USERS - 1
    assert await count_open(session_factory, library.seat.id) == 1


@pytest.mark.asyncio
async def test_different_seats_do_not_block_each_other(services, library, session_factory):
    seats = [library.seat.id, library.other_seat.id, library.third_seat.id]

    results = await asyncio.gather(
        *[services.reservations.create_reservation(seat_id, 100 + i) for i, seat_id in enumerate(seats)]
    )

    assert sorted(r.reservation.seat_id for r in results) == sorted(seats)
    for seat_id in seats:
        assert await count_open(session_factory, seat_id) == 1


async def count_open_for_user(session_factory, user_id: int) -> int:
    async with session_factory() as session:
        result = await session.execute(
            select(func.count(Reservation.id)).where(
                Reservation.user_id == user_id,
                Reservation.status.in_(OPEN_STATUSES),
            )
        )
        return result.scalar()


@pytest.mark.asyncio
async def test_one_user_racing_on_several_seats_stays_within_quota(
    services, library, session_factory, add_reservation
):
    user_id = 1
    await add_reservation(
        library.disabled_seat.id, user_id,
        civil(2026, 2, 10, 9, 50), civil(2026, 2, 10, 12, 0),
        status=ReservationStatus.ACTIVE,
    )
    seats = [library.seat.id, library.other_seat.id, library.third_seat.id]

    results = await asyncio.gather(
        *[services.reservations.create_reservation(seat_id, user_id) for seat_id in seats],
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 2
    assert len(failures) == 1
    assert isinstance(failures[0], QuotaExceededError)
    assert await count_open_for_user(session_factory, user_id) == 3


@pytest.mark.asyncio
async def test_lock_tables_are_emptied_after_use(services, library):
    await asyncio.gather(
        *[services.reservations.create_reservation(library.seat.id, user_id) for user_id in range(1, 6)],
        return_exceptions=True,
    )
    for seat_id in range(1000, 1010):
        with pytest.raises(SeatNotFoundError):
            await services.reservations.create_reservation(seat_id, 1)

    assert len(services.uow._seat_locks) == 0
    assert len(services.uow._user_locks) == 0

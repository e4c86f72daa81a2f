import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from types import SimpleNamespace

from libseat.core.clock import TIMEZONE
from libseat.core.config import Settings
from libseat.core.database import create_engine, create_session_factory, init_db
from libseat.middleware.rate_limiter import limiter
from libseat.models import Reservation, ReservationStatus, ReservationType, Seat, Zone
from libseat.services.container import Services
from libseat.services.seat_cache import SeatListCache

limiter.enabled = False


def civil(year, month, day, hour=0, minute=0, second=0, microsecond=0) -> datetime:
    """Aware datetime in the service's civil timezone"""
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=TIMEZONE)


class FrozenClock:
    """Clock whose current instant only moves when a test moves it"""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, value: datetime):
        self.current = value

    def advance(self, minutes: float = 0, seconds: float = 0):
        self.current = self.current + timedelta(minutes=minutes, seconds=seconds)


class FakeTimer:
    """Monotonic timer replacement for TTL and rate-limit tests"""

    def __init__(self, value: float = 1000.0):
        self.value = value

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float):
        self.value += seconds


@pytest.fixture
def clock():
    # Tuesday 10:00 civil time
    return FrozenClock(civil(2026, 2, 10, 10, 0))


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        PENDING_CLEANUP_INTERVAL_SECONDS=0,
        EXPIRY_WORKER_ENABLED=False,
        RATE_LIMIT_ENABLED=False,
        SEATS_CACHE_BACKEND="memory",
        LOG_JSON=False,
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh file-backed SQLite database per test"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'libseat_test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def seat_cache():
    return SeatListCache(ttl_seconds=3.0, max_keys=32)


@pytest.fixture
def services(session_factory, test_settings, clock, seat_cache):
    return Services(session_factory, settings=test_settings, clock=clock, cache=seat_cache)


@pytest_asyncio.fixture
async def library(session_factory):
    """
    Two zones: "Reading Room" (active) with three seats plus one disabled
    seat, and "Basement" (under maintenance) with one seat.
    """
    async with session_factory() as session:
        reading = Zone(name="Reading Room", floor=2, is_active=True)
        basement = Zone(name="Basement", floor=-1, is_active=False)
        session.add_all([reading, basement])
        await session.flush()

        seats = [
            Seat(seat_number="A1", zone_id=reading.id),
            Seat(seat_number="A2", zone_id=reading.id),
            Seat(seat_number="A3", zone_id=reading.id),
            Seat(seat_number="A4", zone_id=reading.id, is_available=False),
            Seat(seat_number="B1", zone_id=basement.id),
        ]
        session.add_all(seats)
        await session.commit()

        return SimpleNamespace(
            zone=reading,
            inactive_zone=basement,
            seat=seats[0],
            other_seat=seats[1],
            third_seat=seats[2],
            disabled_seat=seats[3],
            inactive_zone_seat=seats[4],
        )


@pytest.fixture
def add_reservation(session_factory, seat_cache):
    """Insert a reservation directly, bypassing admission rules"""

    async def _add(
        seat_id: int,
        user_id: int,
        start: datetime,
        end: datetime,
        status: ReservationStatus = ReservationStatus.PENDING,
        reservation_type: ReservationType = ReservationType.WALK_IN,
    ) -> Reservation:
        async with session_factory() as session:
            reservation = Reservation(
                seat_id=seat_id,
                user_id=user_id,
                start_time=start,
                end_time=end,
                status=status,
                reservation_type=reservation_type,
            )
            session.add(reservation)
            await session.commit()
        await seat_cache.invalidate()
        return reservation

    return _add


@pytest.fixture
def fetch_reservation(session_factory):
    async def _fetch(reservation_id: int) -> Reservation:
        async with session_factory() as session:
            return await session.get(Reservation, reservation_id)

    return _fetch

from datetime import timedelta

from libseat.core.config import Settings
from libseat.services.policy import ReservationPolicy, is_pending_expired, pending_expiry_cutoff
from tests.conftest import civil


def test_policy_defaults():
    policy = ReservationPolicy()
    assert policy.min_available_minutes == 30
    assert policy.buffer_minutes == 15
    assert policy.checkin_window_minutes == 15
    assert policy.max_open_per_user == 3
    assert policy.advance_open_hour == 20


def test_policy_from_settings():
    settings = Settings(_env_file=None, BUFFER_MINUTES=10, MAX_ACTIVE_RESERVATIONS_PER_USER=5)
    policy = ReservationPolicy.from_settings(settings)
    assert policy.buffer_minutes == 10
    assert policy.max_open_per_user == 5


def test_pending_expiry_cutoff():
    now = civil(2026, 2, 10, 10, 0)
    assert pending_expiry_cutoff(now) == civil(2026, 2, 10, 9, 45)
    assert pending_expiry_cutoff(now, 5) == civil(2026, 2, 10, 9, 55)


def test_exactly_on_the_window_is_not_expired():
    start = civil(2026, 2, 10, 10, 0)
    assert not is_pending_expired(start, start + timedelta(minutes=15))
    assert is_pending_expired(start, start + timedelta(minutes=15, seconds=1))
    assert not is_pending_expired(start, start - timedelta(minutes=5))

"""
Reservation policy constants and the pending-expiry rule
"""
from dataclasses import dataclass
from datetime import datetime

from libseat.core.clock import add_minutes, to_civil
from libseat.core.config import Settings, settings as default_settings

DEFAULT_CHECKIN_WINDOW_MINUTES = 15


@dataclass(frozen=True)
class ReservationPolicy:
    min_available_minutes: int = 30
    buffer_minutes: int = 15
    checkin_window_minutes: int = DEFAULT_CHECKIN_WINDOW_MINUTES
    max_open_per_user: int = 3
    advance_open_hour: int = 20
    lookahead_hours: int = 24

    @classmethod
    def from_settings(cls, s: Settings = default_settings) -> "ReservationPolicy":
        return cls(
            min_available_minutes=s.MIN_AVAILABLE_MINUTES,
            buffer_minutes=s.BUFFER_MINUTES,
            checkin_window_minutes=s.CHECKIN_WINDOW_MINUTES,
            max_open_per_user=s.MAX_ACTIVE_RESERVATIONS_PER_USER,
            advance_open_hour=s.ADVANCE_BOOKING_OPEN_HOUR,
            lookahead_hours=s.LOOKAHEAD_HOURS,
        )


def pending_expiry_cutoff(
    current_time: datetime,
    checkin_window_minutes: int = DEFAULT_CHECKIN_WINDOW_MINUTES,
) -> datetime:
    """Pending reservations that started before this instant have missed check-in"""
    return add_minutes(current_time, -checkin_window_minutes)


def is_pending_expired(
    start_time: datetime,
    current_time: datetime,
    checkin_window_minutes: int = DEFAULT_CHECKIN_WINDOW_MINUTES,
) -> bool:
    """Exactly-on-the-window is still valid"""
    elapsed = (to_civil(current_time) - to_civil(start_time)).total_seconds()
    return elapsed > checkin_window_minutes * 60

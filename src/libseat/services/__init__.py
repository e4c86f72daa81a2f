"""
Services package exports
"""
from libseat.services.errors import (
    ReservationError,
    ValidationError,
    PermissionDeniedError,
    NotFoundError,
    SeatNotFoundError,
    ZoneNotFoundError,
    ReservationNotFoundError,
    SeatUnavailableError,
    ZoneInactiveError,
    QuotaExceededError,
    SeatOccupiedError,
    SeatLockedError,
    AdvanceWindowClosedError,
    InvalidAdvanceWindowError,
    SlotConflictError,
    InvalidTransitionError,
    TooEarlyError,
    CheckinExpiredError,
    SeatHasReservationsError,
    ConflictDetected,
)
from libseat.services.policy import ReservationPolicy
from libseat.services.store import ReservationStore, UnitOfWork
from libseat.services.seat_cache import SeatListCache, RedisSeatListCache, build_seat_cache
from libseat.services.seat_status import SeatStatusInfo, SeatStatusResolver, resolve_status
from libseat.services.reservation_service import AdmissionResult, ReservationService
from libseat.services.lifecycle_service import ExpirySweeper, LifecycleService
from libseat.services.expiry_worker import ExpiryWorker
from libseat.services.admin_service import AdminService
from libseat.services.container import Services

__all__ = [
    "ReservationError",
    "ValidationError",
    "PermissionDeniedError",
    "NotFoundError",
    "SeatNotFoundError",
    "ZoneNotFoundError",
    "ReservationNotFoundError",
    "SeatUnavailableError",
    "ZoneInactiveError",
    "QuotaExceededError",
    "SeatOccupiedError",
    "SeatLockedError",
    "AdvanceWindowClosedError",
    "InvalidAdvanceWindowError",
    "SlotConflictError",
    "InvalidTransitionError",
    "TooEarlyError",
    "CheckinExpiredError",
    "SeatHasReservationsError",
    "ConflictDetected",
    "ReservationPolicy",
    "ReservationStore",
    "UnitOfWork",
    "SeatListCache",
    "RedisSeatListCache",
    "build_seat_cache",
    "SeatStatusInfo",
    "SeatStatusResolver",
    "resolve_status",
    "AdmissionResult",
    "ReservationService",
    "ExpirySweeper",
    "LifecycleService",
    "ExpiryWorker",
    "AdminService",
    "Services",
]

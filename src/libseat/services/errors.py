"""
Reservation domain errors

Every class carries a machine-readable ``code`` and the HTTP status the API
layer answers with. Domain-state errors are expected outcomes and are not
logged as failures.
"""


class ReservationError(Exception):
    """Base exception for reservation service errors"""
    code = "reservation_error"
    status_code = 400
    default_message = "Reservation request rejected"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ReservationError):
    """Raised when request input is malformed"""
    code = "validation_error"
    default_message = "Invalid request"


class PermissionDeniedError(ReservationError):
    """Raised when the caller does not own the reservation"""
    code = "permission_denied"
    status_code = 403
    default_message = "No permission for this reservation"


# ---------- Not found ----------

class NotFoundError(ReservationError):
    code = "not_found"
    status_code = 404
    default_message = "Resource not found"


class SeatNotFoundError(NotFoundError):
    code = "seat_not_found"
    default_message = "Seat not found"


class ZoneNotFoundError(NotFoundError):
    code = "zone_not_found"
    default_message = "Zone not found"


class ReservationNotFoundError(NotFoundError):
    code = "reservation_not_found"
    default_message = "Reservation not found"


# ---------- Admission ----------

class SeatUnavailableError(ReservationError):
    """Raised when an administrator has disabled the seat"""
    code = "seat_unavailable"
    default_message = "Seat is not available"


class ZoneInactiveError(ReservationError):
    """Raised when the seat's zone is under maintenance"""
    code = "zone_inactive"
    default_message = "Zone is under maintenance and cannot be reserved"


class QuotaExceededError(ReservationError):
    """Raised when user already holds the maximum number of open reservations"""
    code = "quota_exceeded"
    status_code = 429
    default_message = "Too many active reservations"


class SeatOccupiedError(ReservationError):
    code = "seat_occupied"
    status_code = 409
    default_message = "Seat is currently in use"


class SeatLockedError(ReservationError):
    """Raised when the next reservation starts too soon for a walk-in"""
    code = "seat_locked"
    status_code = 409
    default_message = "Seat is about to be taken"


class AdvanceWindowClosedError(ReservationError):
    code = "advance_window_closed"
    default_message = "Advance booking opens at 20:00"


class InvalidAdvanceWindowError(ReservationError):
    code = "invalid_advance_window"
    default_message = "Advance reservations must start tomorrow"


class SlotConflictError(ReservationError):
    """Raised when the time slot overlaps an existing reservation; safe to retry once"""
    code = "slot_conflict"
    status_code = 409
    default_message = "该时段已被预约"


# ---------- Lifecycle ----------

class InvalidTransitionError(ReservationError):
    code = "invalid_transition"
    default_message = "Reservation cannot change to that state"


class TooEarlyError(ReservationError):
    code = "too_early"
    default_message = "Check-in window has not opened yet"


class CheckinExpiredError(ReservationError):
    """Raised after the reservation was cancelled for a late check-in"""
    code = "checkin_expired"
    status_code = 410
    default_message = "Check-in window elapsed; reservation cancelled"


# ---------- Administration ----------

class SeatHasReservationsError(ReservationError):
    code = "seat_has_reservations"
    default_message = "Seat has reservation records and cannot be deleted"


# ---------- Store ----------

class ConflictDetected(Exception):
    """Raised by the store when a concurrent transaction won the race for a seat"""
    pass

"""
SQLAlchemy Models for the Library Seat Reservation System

Import all models here for easy access and to ensure proper relationship setup.
"""
from libseat.core.database import Base

# Import all models to register them with SQLAlchemy
from libseat.models.zone import Zone
from libseat.models.seat import Seat, SeatType
from libseat.models.reservation import (
    Reservation,
    ReservationStatus,
    ReservationType,
    OPEN_STATUSES,
)

# Export all models
__all__ = [
    "Base",
    "Zone",
    "Seat",
    "SeatType",
    "Reservation",
    "ReservationStatus",
    "ReservationType",
    "OPEN_STATUSES",
]

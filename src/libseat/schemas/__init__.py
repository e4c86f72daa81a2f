"""
Pydantic schemas for API request/response validation
"""
from libseat.schemas.zone import ZoneBase, ZoneResponse, ZoneUpdate
from libseat.schemas.seat import (
    DisplayStatus,
    SeatBase,
    SeatResponse,
    SeatWithStatus,
    SeatListResponse,
    SeatAvailabilityResponse,
    ReservationWindowResponse,
    SeatUpdate,
    SeatTimelineEntry,
)
from libseat.schemas.reservation import (
    ReservationCreate,
    ReservationAdjust,
    ReservationResponse,
    ReservationDetailResponse,
    ReservationMeta,
    ReservationCreatedResponse,
    TransitionResponse,
    Pagination,
    ReservationListResponse,
)

__all__ = [
    # Zones
    "ZoneBase",
    "ZoneResponse",
    "ZoneUpdate",
    # Seats
    "DisplayStatus",
    "SeatBase",
    "SeatResponse",
    "SeatWithStatus",
    "SeatListResponse",
    "SeatAvailabilityResponse",
    "ReservationWindowResponse",
    "SeatUpdate",
    "SeatTimelineEntry",
    # Reservations
    "ReservationCreate",
    "ReservationAdjust",
    "ReservationResponse",
    "ReservationDetailResponse",
    "ReservationMeta",
    "ReservationCreatedResponse",
    "TransitionResponse",
    "Pagination",
    "ReservationListResponse",
]

"""
Pydantic schemas for Seat resources
"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from libseat.models.reservation import ReservationStatus
from libseat.models.seat import SeatType


class DisplayStatus(str, Enum):
    """Computed seat state shown on the map"""
    FREE = "free"
    LIMITED = "limited"
    OCCUPIED = "occupied"
    LOCKED = "locked"


class SeatBase(BaseModel):
    """Base Seat schema"""
    seat_number: str = Field(..., max_length=50, description="Seat label")
    zone_id: int = Field(..., description="Owning zone")
    x: int = 0
    y: int = 0
    rotation: int = 0
    seat_type: SeatType = SeatType.STANDARD
    facilities: Optional[Any] = None
    note: Optional[str] = None


class SeatResponse(SeatBase):
    """Seat response schema"""
    id: int
    is_available: bool = Field(..., description="Administrator availability flag")

    model_config = ConfigDict(from_attributes=True)


class SeatWithStatus(SeatResponse):
    """Seat map entry with its computed display status"""
    display_status: DisplayStatus = Field(..., description="free, limited, occupied or locked")
    available_until: Optional[datetime] = Field(None, description="Latest end for a new walk-in (limited only)")
    next_reservation_at: Optional[datetime] = None


class SeatListResponse(BaseModel):
    seats: List[SeatWithStatus]
    total: int


class ReservationWindowResponse(BaseModel):
    id: Optional[int] = None
    start_time: datetime
    end_time: datetime


class SeatAvailabilityResponse(BaseModel):
    """Single seat status detail"""
    seat_id: int
    status: DisplayStatus
    available_until: Optional[datetime] = None
    available_minutes: Optional[int] = None
    next_reservation: Optional[ReservationWindowResponse] = None
    current_occupant: Optional[ReservationWindowResponse] = None
    message: str


class SeatUpdate(BaseModel):
    """Administrator seat edit; only provided fields change"""
    seat_number: Optional[str] = Field(None, min_length=1, max_length=50)
    is_available: Optional[bool] = None
    x: Optional[int] = None
    y: Optional[int] = None
    note: Optional[str] = None


class SeatTimelineEntry(BaseModel):
    """One open reservation on the seat's day timeline"""
    id: int
    start_time: datetime
    end_time: datetime
    status: ReservationStatus
    is_mine: bool

"""Pydantic schemas for Reservation resources"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from libseat.core.clock import parse_datetime
from libseat.models.reservation import ReservationStatus, ReservationType
from libseat.schemas.seat import SeatResponse
from libseat.schemas.zone import ZoneResponse


def _parse_civil(value):
    if isinstance(value, str):
        return parse_datetime(value)
    return value


class ReservationCreate(BaseModel):
    seat_id: int = Field(..., gt=0)
    reservation_type: ReservationType = ReservationType.WALK_IN
    start_time: Optional[datetime] = Field(None, description="Required for advance reservations")

    @field_validator("start_time", mode="before")
    @classmethod
    def parse_start_time(cls, value):
        return _parse_civil(value)


class ReservationAdjust(BaseModel):
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_times(cls, value):
        return _parse_civil(value)


class SeatSummary(SeatResponse):
    zone: Optional[ZoneResponse] = None


class ReservationResponse(BaseModel):
    id: int
    seat_id: int
    user_id: int
    start_time: datetime
    end_time: datetime
    status: ReservationStatus
    reservation_type: ReservationType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationDetailResponse(ReservationResponse):
    seat: Optional[SeatSummary] = None


class ReservationMeta(BaseModel):
    is_advance: bool = False
    is_limited: bool = False
    message: str


class ReservationCreatedResponse(BaseModel):
    reservation: ReservationResponse
    meta: ReservationMeta


class TransitionResponse(BaseModel):
    reservation: ReservationResponse
    message: Optional[str] = None


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class ReservationListResponse(BaseModel):
    reservations: List[ReservationDetailResponse]
    pagination: Pagination

"""Seats API endpoints"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request

from libseat.api.deps import get_services, require_admin
from libseat.middleware.rate_limiter import limiter
from libseat.schemas import (
    ReservationWindowResponse,
    SeatAvailabilityResponse,
    SeatListResponse,
    SeatResponse,
    SeatTimelineEntry,
    SeatUpdate,
)
from libseat.services.container import Services
from libseat.services.seat_status import ReservationWindow

router = APIRouter()


def _window(window: Optional[ReservationWindow]) -> Optional[ReservationWindowResponse]:
    if window is None:
        return None
    return ReservationWindowResponse(id=window.id, start_time=window.start_time, end_time=window.end_time)


@router.get("/seats", response_model=SeatListResponse)
@limiter.limit("60/minute")
async def list_seats(
    request: Request,
    zone_id: Optional[int] = Query(None, description="Only seats in this zone"),
    services: Services = Depends(get_services),
):
    """
    Seat map with computed display status.

    - **free**: no reservation in the next 24 hours
    - **limited**: usable until `available_until`
    - **occupied**: a reservation is running now
    - **locked**: disabled, or the next reservation starts within 30 minutes
    """
    seats = await services.resolver.list_seats(zone_id)
    return SeatListResponse(seats=seats, total=len(seats))


@router.get("/seats/{seat_id}/availability", response_model=SeatAvailabilityResponse)
async def get_seat_availability(
    seat_id: int,
    services: Services = Depends(get_services),
):
    info = await services.resolver.seat_availability(seat_id)
    return SeatAvailabilityResponse(
        seat_id=seat_id,
        status=info.display_status,
        available_until=info.available_until,
        available_minutes=info.available_minutes,
        next_reservation=_window(info.next_reservation),
        current_occupant=_window(info.current_occupant),
        message=info.message,
    )


@router.get("/seats/{seat_id}/reservations", response_model=List[SeatTimelineEntry])
async def get_seat_timeline(
    seat_id: int,
    date: Optional[str] = Query(None, description="Civil day as YYYY-MM-DD (default: today)"),
    user_id: Optional[int] = Query(None, description="Marks the caller's own reservations"),
    services: Services = Depends(get_services),
):
    return await services.reservations.seat_timeline(seat_id, date, user_id)


@router.put("/seats/{seat_id}", response_model=SeatResponse, dependencies=[Depends(require_admin)])
async def update_seat(
    seat_id: int,
    payload: SeatUpdate,
    services: Services = Depends(get_services),
):
    seat = await services.admin.update_seat(seat_id, **payload.model_dump(exclude_unset=True))
    return SeatResponse.model_validate(seat)


@router.delete("/seats/{seat_id}", dependencies=[Depends(require_admin)])
async def delete_seat(
    seat_id: int,
    services: Services = Depends(get_services),
):
    await services.admin.delete_seat(seat_id)
    return {"message": f"Seat {seat_id} deleted"}

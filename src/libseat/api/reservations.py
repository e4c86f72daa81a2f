"""Reservations API endpoints"""
import math
from fastapi import APIRouter, Depends, Query, Request

from libseat.api.deps import get_current_user_id, get_is_admin, get_services
from libseat.middleware.rate_limiter import limiter
from libseat.models import ReservationStatus
from libseat.schemas import (
    Pagination,
    ReservationAdjust,
    ReservationCreate,
    ReservationCreatedResponse,
    ReservationDetailResponse,
    ReservationListResponse,
    ReservationMeta,
    ReservationResponse,
    TransitionResponse,
)
from libseat.services.container import Services

router = APIRouter()


@router.post("/reservations", response_model=ReservationCreatedResponse, status_code=201)
@limiter.limit("10/minute")
async def create_reservation(
    request: Request,
    payload: ReservationCreate,
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """
    Reserve a seat.

    - **walk_in**: starts now, ends at closing or before the next reservation
    - **advance**: from 20:00 only, for a start time tomorrow

    A 409 `slot_conflict` means another request took the slot first; it is
    safe to retry once.
    """
    result = await services.reservations.create_reservation(
        seat_id=payload.seat_id,
        user_id=user_id,
        reservation_type=payload.reservation_type,
        start_time=payload.start_time,
    )
    return ReservationCreatedResponse(
        reservation=ReservationResponse.model_validate(result.reservation),
        meta=ReservationMeta(
            is_advance=result.is_advance,
            is_limited=result.is_limited,
            message=result.message,
        ),
    )


@router.get("/reservations", response_model=ReservationListResponse)
async def list_reservations(
    page: int = Query(1, description="Page number"),
    page_size: int = Query(20, description="Items per page (1-100)"),
    user_id: int = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    services: Services = Depends(get_services),
):
    items, total, page, page_size = await services.reservations.list_reservations(
        user_id, is_admin, page, page_size
    )
    return ReservationListResponse(
        reservations=[ReservationDetailResponse.model_validate(r) for r in items],
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size) if total else 0,
        ),
    )


@router.get("/reservations/{reservation_id}", response_model=ReservationDetailResponse)
async def get_reservation(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    services: Services = Depends(get_services),
):
    reservation = await services.reservations.get_reservation(reservation_id, user_id, is_admin)
    return ReservationDetailResponse.model_validate(reservation)


@router.post("/reservations/{reservation_id}/checkin", response_model=TransitionResponse)
async def check_in(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    reservation = await services.lifecycle.check_in(reservation_id, user_id)
    return TransitionResponse(
        reservation=ReservationResponse.model_validate(reservation),
        message="Checked in",
    )


@router.post("/reservations/{reservation_id}/finish", response_model=TransitionResponse)
async def finish(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    reservation = await services.lifecycle.finish(reservation_id, user_id)
    if reservation.status == ReservationStatus.CANCELLED:
        message = "Reservation had not started and was cancelled"
    else:
        message = "Seat released"
    return TransitionResponse(reservation=ReservationResponse.model_validate(reservation), message=message)


@router.patch("/reservations/{reservation_id}/cancel", response_model=TransitionResponse)
async def cancel(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    services: Services = Depends(get_services),
):
    reservation = await services.lifecycle.cancel(reservation_id, user_id, is_admin)
    return TransitionResponse(
        reservation=ReservationResponse.model_validate(reservation),
        message="Reservation cancelled",
    )


@router.patch("/reservations/{reservation_id}/adjust", response_model=ReservationResponse)
async def adjust(
    reservation_id: int,
    payload: ReservationAdjust,
    user_id: int = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    services: Services = Depends(get_services),
):
    reservation = await services.reservations.adjust_reservation(
        reservation_id, user_id, payload.start_time, payload.end_time, is_admin
    )
    return ReservationResponse.model_validate(reservation)


@router.delete("/reservations/{reservation_id}")
async def delete_reservation(
    reservation_id: int,
    user_id: int = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    services: Services = Depends(get_services),
):
    await services.lifecycle.delete(reservation_id, user_id, is_admin)
    return {"message": f"Reservation {reservation_id} deleted"}

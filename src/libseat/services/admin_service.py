"""
Zone and seat administration
"""
from typing import Optional, Sequence

from libseat.models import Seat, Zone
from libseat.services.errors import SeatHasReservationsError
from libseat.services.seat_cache import SeatListCache
from libseat.services.store import UnitOfWork
import logging

logger = logging.getLogger(__name__)


class AdminService:
    """Administrator edits; every write invalidates the seat-list cache"""

    def __init__(self, uow: UnitOfWork, cache: SeatListCache):
        self.uow = uow
        self.cache = cache

    async def list_zones(self) -> Sequence[Zone]:
        async with self.uow.read() as store:
            return await store.list_zones()

    async def get_zone(self, zone_id: int) -> Zone:
        async with self.uow.read() as store:
            return await store.get_zone(zone_id, required=True)

    async def update_zone(
        self,
        zone_id: int,
        name: Optional[str] = None,
        floor: Optional[int] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Zone:
        async with self.uow.transaction() as store:
            zone = await store.get_zone(zone_id, required=True)
            if name is not None:
                zone.name = name
            if floor is not None:
                zone.floor = floor
            if description is not None:
                zone.description = description
            if is_active is not None:
                zone.is_active = is_active

        await self.cache.invalidate(zone_id)
        logger.info(f"🛠️ Zone {zone_id} updated (active={zone.is_active})")
        return zone

    async def update_seat(
        self,
        seat_id: int,
        seat_number: Optional[str] = None,
        is_available: Optional[bool] = None,
        x: Optional[int] = None,
        y: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Seat:
        async with self.uow.transaction(seat_id) as store:
            seat = await store.get_seat(seat_id, required=True)
            if seat_number is not None:
                seat.seat_number = seat_number
            if is_available is not None:
                seat.is_available = is_available
            if x is not None:
                seat.x = x
            if y is not None:
                seat.y = y
            if note is not None:
                seat.note = note

        await self.cache.invalidate(seat.zone_id)
        logger.info(f"🛠️ Seat {seat_id} updated (available={seat.is_available})")
        return seat

    async def delete_seat(self, seat_id: int) -> None:
        """Seats with reservation history are disabled instead; deleting them is refused"""
        async with self.uow.transaction(seat_id) as store:
            seat = await store.get_seat(seat_id, required=True)
            if await store.count_reservations_for_seat(seat_id) > 0:
                raise SeatHasReservationsError()
            zone_id = seat.zone_id
            await store.delete_seat(seat)

        await self.cache.invalidate(zone_id)
        logger.info(f"🗑️ Seat {seat_id} deleted")

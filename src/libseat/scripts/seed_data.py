"""
Seed script to populate the database with sample zones and seats

Usage:
    python -m libseat.scripts.seed_data
"""
import asyncio
from sqlalchemy import select, func

from libseat.core.database import AsyncSessionLocal, init_db
from libseat.models import Seat, SeatType, Zone

ZONES = [
    {
        "name": "Quiet Reading Room",
        "floor": 2,
        "description": "Silent study, no calls",
        "rows": 4,
        "cols": 8,
        "seat_type": SeatType.STANDARD,
        "facilities": ["power"],
    },
    {
        "name": "Computer Area",
        "floor": 3,
        "description": "Desks with workstations",
        "rows": 3,
        "cols": 6,
        "seat_type": SeatType.COMPUTER_DESK,
        "facilities": ["power", "computer", "ethernet"],
    },
    {
        "name": "Group Study Rooms",
        "floor": 4,
        "description": "Bookable rooms for small groups",
        "rows": 1,
        "cols": 4,
        "seat_type": SeatType.STUDY_ROOM,
        "facilities": ["whiteboard", "screen"],
    },
]

SEAT_SPACING = 60


async def create_zone_with_seats(db, data) -> int:
    """Create a zone and a grid of seats; existing zones are left alone"""
    result = await db.execute(select(Zone).where(Zone.name == data["name"]))
    if result.scalar_one_or_none():
        print(f"Zone {data['name']} already exists, skipping...")
        return 0

    zone = Zone(
        name=data["name"],
        floor=data["floor"],
        description=data["description"],
        is_active=True,
        layout_objects=[],
    )
    db.add(zone)
    await db.flush()

    prefix = data["name"][0].upper()
    seats_created = 0
    for row in range(data["rows"]):
        for col in range(data["cols"]):
            db.add(Seat(
                zone_id=zone.id,
                seat_number=f"{prefix}{row + 1}-{col + 1:02d}",
                x=col * SEAT_SPACING,
                y=row * SEAT_SPACING,
                seat_type=data["seat_type"],
                facilities=data["facilities"],
                is_available=True,
            ))
            seats_created += 1

    print(f"Created zone: {zone.name} ({seats_created} seats)")
    return seats_created


async def seed_database():
    """Main seeding function"""
    print("Starting database seeding...")
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            total = 0
            for data in ZONES:
                total += await create_zone_with_seats(db, data)
            await db.commit()

            print("\n=== Seeding Complete! ===")
            print(f"Created {total} seats")

            result = await db.execute(
                select(Zone.name, func.count(Seat.id))
                .join(Seat, Seat.zone_id == Zone.id, isouter=True)
                .group_by(Zone.id, Zone.name)
            )
            for name, count in result.all():
                print(f"  - {name}: {count} seats")

        except Exception as e:
            print(f"Error during seeding: {e}")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(seed_database())

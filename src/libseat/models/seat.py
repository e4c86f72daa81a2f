"""
Seat model - a reservable unit inside exactly one zone
"""
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship

from libseat.core.database import Base


class SeatType(PyEnum):
    """Enum for seat type"""
    STANDARD = "standard"
    STUDY_ROOM = "study_room"
    COMPUTER_DESK = "computer_desk"
    READING_TABLE = "reading_table"


class Seat(Base):
    __tablename__ = "seats"

    id = Column(Integer, primary_key=True, index=True)
    seat_number = Column(String(50), nullable=False)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False, index=True)
    # Administrator hard disable; a disabled seat is always shown as locked
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    x = Column(Integer, nullable=False, default=0)
    y = Column(Integer, nullable=False, default=0)
    rotation = Column(Integer, nullable=False, default=0)
    seat_type = Column(
        Enum(SeatType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SeatType.STANDARD,
        index=True,
    )
    facilities = Column(JSON, nullable=True)
    note = Column(Text, nullable=True)

    # Relationships
    zone = relationship("Zone", back_populates="seats")
    reservations = relationship("Reservation", back_populates="seat")

    def __repr__(self):
        return (f"<Seat(id={self.id}, zone_id={self.zone_id}, "
                f"seat_number='{self.seat_number}', available={self.is_available})>")

"""
Reservation model - a claim on one seat for the half-open interval [start_time, end_time)
"""
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship

from libseat.core.clock import now
from libseat.core.database import Base, CivilDateTime


class ReservationStatus(PyEnum):
    """Enum for reservation status"""
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReservationType(PyEnum):
    """Enum for reservation type"""
    WALK_IN = "walk_in"
    ADVANCE = "advance"


# Statuses that hold a seat and count toward the per-user quota
OPEN_STATUSES = (ReservationStatus.PENDING, ReservationStatus.ACTIVE)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_reservation_interval"),
    )

    id = Column(Integer, primary_key=True, index=True)
    seat_id = Column(Integer, ForeignKey("seats.id"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    start_time = Column(CivilDateTime, nullable=False, index=True)
    end_time = Column(CivilDateTime, nullable=False, index=True)
    status = Column(
        Enum(ReservationStatus, values_callable=_enum_values),
        nullable=False,
        default=ReservationStatus.PENDING,
        index=True,
    )
    reservation_type = Column(
        Enum(ReservationType, values_callable=_enum_values),
        nullable=False,
        default=ReservationType.WALK_IN,
    )
    created_at = Column(CivilDateTime, nullable=False, default=now)

    # Relationships
    seat = relationship("Seat", back_populates="reservations")

    def __repr__(self):
        return (f"<Reservation(id={self.id}, seat_id={self.seat_id}, user_id={self.user_id}, "
                f"status='{self.status.value}', {self.start_time} -> {self.end_time})>")

    @property
    def is_open(self) -> bool:
        """Check if reservation still holds its seat"""
        return self.status in OPEN_STATUSES

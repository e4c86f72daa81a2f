"""
Zone model - a physical area of the library (reading room, floor wing)
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, JSON
from sqlalchemy.orm import relationship

from libseat.core.database import Base


class Zone(Base):
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    floor = Column(Integer, nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    # Tables, walls, doors drawn by the layout editor; stored as-is
    layout_objects = Column(JSON, nullable=True)

    # Relationships
    seats = relationship("Seat", back_populates="zone")

    def __repr__(self):
        return f"<Zone(id={self.id}, name='{self.name}', floor={self.floor}, active={self.is_active})>"

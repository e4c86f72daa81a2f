"""
Pydantic schemas for Zone resources
"""
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ZoneBase(BaseModel):
    """Base Zone schema"""
    name: str = Field(..., max_length=200, description="Zone name")
    floor: int = Field(..., description="Floor number")
    description: Optional[str] = Field(None, description="Zone description")


class ZoneResponse(ZoneBase):
    """Zone response schema"""
    id: int
    is_active: bool = Field(..., description="Whether the zone accepts new reservations")
    layout_objects: Optional[Any] = Field(None, description="Opaque layout editor data")

    model_config = ConfigDict(from_attributes=True)


class ZoneUpdate(BaseModel):
    """Administrator zone edit; only provided fields change"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    floor: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

"""Pydantic models for diaper changes (wet / poop / mixed)."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.base import UtcDatetime

DiaperType = Literal["wet", "poop", "mixed"]
PoopColor = Literal["yellow", "green", "brown", "black", "red", "white"]
PoopConsistency = Literal["liquid", "soft", "formed", "hard"]


class DiaperBase(BaseModel):
    timestamp: UtcDatetime
    type: DiaperType
    poop_color: Optional[PoopColor] = None
    consistency: Optional[PoopConsistency] = None
    notes: Optional[str] = Field(None, max_length=500)


class DiaperCreate(DiaperBase):
    """Payload to record a diaper change."""
    pass


class DiaperUpdate(BaseModel):
    """Payload to update a diaper record: all fields optional."""
    timestamp: Optional[UtcDatetime] = None
    type: Optional[DiaperType] = None
    poop_color: Optional[PoopColor] = None
    consistency: Optional[PoopConsistency] = None
    notes: Optional[str] = Field(None, max_length=500)


class Diaper(DiaperBase):
    """Full model returned from the database."""
    id: int
    baby_id: int
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

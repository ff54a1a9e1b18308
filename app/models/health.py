"""Pydantic models for health measurements (temperature, growth)."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.base import UtcDatetime

HealthType = Literal["temperature", "weight", "height", "head"]
TemperatureLocation = Literal["axillary", "ear", "forehead", "rectal"]

HEALTH_UNITS: dict[str, str] = {
    "temperature": "°C",
    "weight": "kg",
    "height": "cm",
    "head": "cm",
}


class HealthBase(BaseModel):
    timestamp: UtcDatetime
    type: HealthType
    value: float = Field(..., allow_inf_nan=False)
    location: Optional[TemperatureLocation] = None
    notes: Optional[str] = Field(None, max_length=500)


class HealthCreate(HealthBase):
    """Payload to record a measurement. The unit follows from the type."""
    pass


class HealthUpdate(BaseModel):
    """Payload to update a measurement: all fields optional."""
    timestamp: Optional[UtcDatetime] = None
    type: Optional[HealthType] = None
    value: Optional[float] = Field(None, allow_inf_nan=False)
    location: Optional[TemperatureLocation] = None
    notes: Optional[str] = Field(None, max_length=500)


class Health(HealthBase):
    """Full measurement returned from the database."""
    id: int
    baby_id: int
    user_id: str
    unit: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

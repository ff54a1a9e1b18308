from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.base import UtcDatetime

FeedingType = Literal["breast-left", "breast-right", "breast-both", "formula", "mixed"]
VolumeUnit = Literal["ml", "oz"]


class FeedingBase(BaseModel):
    timestamp: UtcDatetime
    type: FeedingType
    amount: Optional[float] = Field(None, allow_inf_nan=False, description="Volume, in `unit`")
    unit: VolumeUnit = "ml"
    duration: Optional[int] = Field(None, ge=0, description="Duration in minutes")
    notes: Optional[str] = Field(None, max_length=500)


class FeedingCreate(FeedingBase):
    """Payload to record a breastfeeding or bottle session."""
    pass


class FeedingUpdate(BaseModel):
    """Payload to update a feeding record: all fields are optional."""
    timestamp: Optional[UtcDatetime] = None
    type: Optional[FeedingType] = None
    amount: Optional[float] = Field(None, allow_inf_nan=False)
    unit: Optional[VolumeUnit] = None
    duration: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=500)


class Feeding(FeedingBase):
    """Full model returned from the database."""
    id: int
    baby_id: int
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

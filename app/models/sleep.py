from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.base import UtcDatetime

SleepType = Literal["night", "nap"]
SleepQuality = Literal["deep", "light", "restless"]


class SleepBase(BaseModel):
    start_time: UtcDatetime
    end_time: Optional[UtcDatetime] = None
    type: SleepType
    quality: Optional[SleepQuality] = None
    notes: Optional[str] = Field(None, max_length=500)


class SleepCreate(SleepBase):
    """Payload to record a sleep. Leave end_time empty while the timer runs."""
    pass


class SleepUpdate(BaseModel):
    """Payload to update a sleep record: all fields are optional."""
    start_time: Optional[UtcDatetime] = None
    end_time: Optional[UtcDatetime] = None
    type: Optional[SleepType] = None
    quality: Optional[SleepQuality] = None
    notes: Optional[str] = Field(None, max_length=500)


class Sleep(SleepBase):
    """Full model returned from the database. duration is derived, in minutes."""
    id: int
    baby_id: int
    user_id: str
    duration: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

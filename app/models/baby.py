from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.collaboration import Role

Gender = Literal["male", "female"]


class BabyBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    birth_date: date
    gender: Optional[Gender] = None
    photo: Optional[str] = Field(None, max_length=500, description="Photo reference (URL or storage key)")


class BabyCreate(BabyBase):
    """Payload to register a baby. The creator becomes its owner."""
    pass


class BabyUpdate(BaseModel):
    """Payload to update a baby: all fields are optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    photo: Optional[str] = Field(None, max_length=500)


class Baby(BabyBase):
    """Full model returned from the database."""
    id: int
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BabyWithRole(Baby):
    """A baby as seen by one caregiver, with that caregiver's role."""
    role: Role

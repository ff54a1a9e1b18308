"""Invitation models: time-limited, token-based access grants."""

from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr

InvitedRole = Literal["editor", "viewer"]


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"


class InvitationCreate(BaseModel):
    """Payload to invite someone by email. Owner cannot be granted this way."""
    email: EmailStr
    role: InvitedRole = "editor"


class Invitation(BaseModel):
    id: int
    baby_id: int
    email: str
    role: InvitedRole
    token: str
    invited_by: str
    status: InvitationStatus
    created_at: datetime
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    is_expired: bool = False
    link: str

    model_config = {"from_attributes": True}


class InvitationBaby(BaseModel):
    id: int
    name: str
    birth_date: date


class InvitationDetails(BaseModel):
    """What an invitee sees when opening an invitation link."""
    email: str
    role: InvitedRole
    expires_at: datetime
    baby: InvitationBaby


class AcceptResult(BaseModel):
    baby_id: int
    role: InvitedRole
    already_collaborator: bool = False
    redirect_to: str = "/"

"""Roles and collaborator grants."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class CollaboratorStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class CurrentUser(BaseModel):
    """Authenticated identity handed over by the identity provider."""
    id: str
    email: Optional[str] = None


class Collaborator(BaseModel):
    id: int
    baby_id: int
    user_id: str
    user_email: Optional[str] = None
    role: Role
    status: CollaboratorStatus
    invited_by: Optional[str] = None
    invited_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CollaboratorRoleUpdate(BaseModel):
    """Payload for an owner changing another caregiver's role."""
    role: Role


class RoleResponse(BaseModel):
    baby_id: int
    role: Optional[Role] = None
    can_edit: bool
    can_manage_collaborators: bool

"""Endpoints for listing and managing a baby's collaborators."""

from fastapi import APIRouter, status

from app.api.dependencies import CurrentUserDep, DbDep
from app.models.collaboration import Collaborator, CollaboratorRoleUpdate
from app.services import access_control

router = APIRouter(prefix="/babies/{baby_id}/collaborators", tags=["collaborators"])


@router.get("", response_model=list[Collaborator])
async def list_collaborators(baby_id: int, db: DbDep, user: CurrentUserDep) -> list[Collaborator]:
    """Return everyone with accepted access to this baby."""
    return await access_control.list_collaborators(db, user, baby_id)


@router.patch("/{user_id}", response_model=Collaborator)
async def update_collaborator_role(
    baby_id: int, user_id: str, payload: CollaboratorRoleUpdate, db: DbDep, user: CurrentUserDep
) -> Collaborator:
    """Switch a collaborator between editor and viewer (owner only)."""
    return await access_control.update_collaborator_role(db, user, baby_id, user_id, payload.role)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_collaborator(baby_id: int, user_id: str, db: DbDep, user: CurrentUserDep) -> None:
    """Remove a collaborator, or leave the baby when user_id is the caller."""
    await access_control.remove_collaborator(db, user, baby_id, user_id)

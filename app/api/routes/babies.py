"""CRUD endpoints for babies."""

from fastapi import APIRouter, status

from app.api.dependencies import CurrentUserDep, DbDep
from app.models.baby import Baby, BabyCreate, BabyUpdate, BabyWithRole
from app.models.collaboration import RoleResponse
from app.services import access_control, baby_service

router = APIRouter(prefix="/babies", tags=["babies"])


@router.post("", response_model=Baby, status_code=status.HTTP_201_CREATED)
async def create_baby(payload: BabyCreate, db: DbDep, user: CurrentUserDep) -> Baby:
    """Register a baby; the caller becomes its owner."""
    return await baby_service.create_baby(db, user, payload)


@router.get("", response_model=list[BabyWithRole])
async def list_babies(db: DbDep, user: CurrentUserDep) -> list[BabyWithRole]:
    """Return the babies shared with the caller, most recent first."""
    return await baby_service.list_babies(db, user)


@router.get("/{baby_id}", response_model=Baby)
async def get_baby(baby_id: int, db: DbDep, user: CurrentUserDep) -> Baby:
    """Return a baby by its identifier."""
    return await baby_service.get_baby(db, user, baby_id)


@router.get("/{baby_id}/role", response_model=RoleResponse)
async def get_my_role(baby_id: int, db: DbDep, user: CurrentUserDep) -> RoleResponse:
    """Return the caller's role on this baby (null without access)."""
    role = await access_control.resolve_role(db, baby_id, user.id)
    return RoleResponse(
        baby_id=baby_id,
        role=role,
        can_edit=access_control.can_edit(role),
        can_manage_collaborators=access_control.can_manage_collaborators(role),
    )


@router.patch("/{baby_id}", response_model=Baby)
async def update_baby(baby_id: int, payload: BabyUpdate, db: DbDep, user: CurrentUserDep) -> Baby:
    """Update a baby's information (partial fields)."""
    return await baby_service.update_baby(db, user, baby_id, payload)


@router.delete("/{baby_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_baby(baby_id: int, db: DbDep, user: CurrentUserDep) -> None:
    """Delete a baby with all its records, collaborators and invitations (owner only)."""
    await baby_service.delete_baby(db, user, baby_id)

"""Endpoints for diaper changes."""

from fastapi import APIRouter, status

from app.api.dependencies import CurrentUserDep, DbDep
from app.models.diaper import Diaper, DiaperCreate, DiaperUpdate
from app.services import diaper_service

router = APIRouter(prefix="/babies/{baby_id}/diapers", tags=["diapers"])


@router.post("", response_model=Diaper, status_code=status.HTTP_201_CREATED)
async def add_diaper(baby_id: int, payload: DiaperCreate, db: DbDep, user: CurrentUserDep) -> Diaper:
    """Record a diaper change."""
    return await diaper_service.add_diaper(db, user, baby_id, payload)


@router.get("", response_model=list[Diaper])
async def get_diapers(baby_id: int, db: DbDep, user: CurrentUserDep) -> list[Diaper]:
    """Return diaper changes for a baby, most recent first."""
    return await diaper_service.get_diapers_by_baby(db, user, baby_id)


@router.get("/{diaper_id}", response_model=Diaper)
async def get_diaper(baby_id: int, diaper_id: int, db: DbDep, user: CurrentUserDep) -> Diaper:
    return await diaper_service.get_diaper(db, user, baby_id, diaper_id)


@router.patch("/{diaper_id}", response_model=Diaper)
async def update_diaper(
    baby_id: int, diaper_id: int, payload: DiaperUpdate, db: DbDep, user: CurrentUserDep
) -> Diaper:
    """Update a diaper record (all fields optional)."""
    return await diaper_service.update_diaper(db, user, baby_id, diaper_id, payload)


@router.delete("/{diaper_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_diaper(baby_id: int, diaper_id: int, db: DbDep, user: CurrentUserDep) -> None:
    """Delete a diaper record."""
    await diaper_service.delete_diaper(db, user, baby_id, diaper_id)

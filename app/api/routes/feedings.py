"""Endpoints for feedings / breastfeedings."""

from fastapi import APIRouter, status

from app.api.dependencies import CurrentUserDep, DbDep
from app.models.feeding import Feeding, FeedingCreate, FeedingUpdate
from app.services import feeding_service

router = APIRouter(prefix="/babies/{baby_id}/feedings", tags=["feedings"])


@router.post("", response_model=Feeding, status_code=status.HTTP_201_CREATED)
async def add_feeding(baby_id: int, payload: FeedingCreate, db: DbDep, user: CurrentUserDep) -> Feeding:
    """Record a breastfeeding or bottle session."""
    return await feeding_service.add_feeding(db, user, baby_id, payload)


@router.get("", response_model=list[Feeding])
async def get_feedings(baby_id: int, db: DbDep, user: CurrentUserDep) -> list[Feeding]:
    """Return feedings for a baby, most recent first."""
    return await feeding_service.get_feedings_by_baby(db, user, baby_id)


@router.get("/{feeding_id}", response_model=Feeding)
async def get_feeding(baby_id: int, feeding_id: int, db: DbDep, user: CurrentUserDep) -> Feeding:
    return await feeding_service.get_feeding(db, user, baby_id, feeding_id)


@router.patch("/{feeding_id}", response_model=Feeding)
async def update_feeding(
    baby_id: int, feeding_id: int, payload: FeedingUpdate, db: DbDep, user: CurrentUserDep
) -> Feeding:
    """Update a feeding record (all fields optional)."""
    return await feeding_service.update_feeding(db, user, baby_id, feeding_id, payload)


@router.delete("/{feeding_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feeding(baby_id: int, feeding_id: int, db: DbDep, user: CurrentUserDep) -> None:
    """Delete a feeding record."""
    await feeding_service.delete_feeding(db, user, baby_id, feeding_id)

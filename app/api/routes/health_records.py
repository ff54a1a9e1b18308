"""Endpoints for health measurements."""

from fastapi import APIRouter, status

from app.api.dependencies import CurrentUserDep, DbDep
from app.models.health import Health, HealthCreate, HealthUpdate
from app.services import health_service

router = APIRouter(prefix="/babies/{baby_id}/health-records", tags=["health-records"])


@router.post("", response_model=Health, status_code=status.HTTP_201_CREATED)
async def add_health_record(
    baby_id: int, payload: HealthCreate, db: DbDep, user: CurrentUserDep
) -> Health:
    """Record a temperature, weight, height or head measurement."""
    return await health_service.add_health_record(db, user, baby_id, payload)


@router.get("", response_model=list[Health])
async def get_health_records(baby_id: int, db: DbDep, user: CurrentUserDep) -> list[Health]:
    return await health_service.get_health_records_by_baby(db, user, baby_id)


@router.get("/{record_id}", response_model=Health)
async def get_health_record(baby_id: int, record_id: int, db: DbDep, user: CurrentUserDep) -> Health:
    return await health_service.get_health_record(db, user, baby_id, record_id)


@router.patch("/{record_id}", response_model=Health)
async def update_health_record(
    baby_id: int, record_id: int, payload: HealthUpdate, db: DbDep, user: CurrentUserDep
) -> Health:
    return await health_service.update_health_record(db, user, baby_id, record_id, payload)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_health_record(baby_id: int, record_id: int, db: DbDep, user: CurrentUserDep) -> None:
    await health_service.delete_health_record(db, user, baby_id, record_id)

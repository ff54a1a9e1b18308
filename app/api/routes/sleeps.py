"""Endpoints for sleep records (timer start / stop)."""

from fastapi import APIRouter, status

from app.api.dependencies import CurrentUserDep, DbDep
from app.models.sleep import Sleep, SleepCreate, SleepUpdate
from app.services import sleep_service

router = APIRouter(prefix="/babies/{baby_id}/sleeps", tags=["sleeps"])


@router.post("", response_model=Sleep, status_code=status.HTTP_201_CREATED)
async def add_sleep(baby_id: int, payload: SleepCreate, db: DbDep, user: CurrentUserDep) -> Sleep:
    """Record a sleep. Omit end_time to start the timer."""
    return await sleep_service.add_sleep(db, user, baby_id, payload)


@router.get("", response_model=list[Sleep])
async def get_sleeps(baby_id: int, db: DbDep, user: CurrentUserDep) -> list[Sleep]:
    """Return sleeps for a baby, most recent start first."""
    return await sleep_service.get_sleeps_by_baby(db, user, baby_id)


@router.get("/{sleep_id}", response_model=Sleep)
async def get_sleep(baby_id: int, sleep_id: int, db: DbDep, user: CurrentUserDep) -> Sleep:
    return await sleep_service.get_sleep(db, user, baby_id, sleep_id)


@router.patch("/{sleep_id}", response_model=Sleep)
async def update_sleep(
    baby_id: int, sleep_id: int, payload: SleepUpdate, db: DbDep, user: CurrentUserDep
) -> Sleep:
    """Update a sleep record; set end_time to stop the timer."""
    return await sleep_service.update_sleep(db, user, baby_id, sleep_id, payload)


@router.delete("/{sleep_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sleep(baby_id: int, sleep_id: int, db: DbDep, user: CurrentUserDep) -> None:
    await sleep_service.delete_sleep(db, user, baby_id, sleep_id)

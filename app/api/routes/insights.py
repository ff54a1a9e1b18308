"""Read-only views over a baby's records: statistics, activity feed, export."""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.api.dependencies import CurrentUserDep, DbDep
from app.models.activity import ActivityLog
from app.models.stats import BabyStats
from app.services import activity_service, export_service, stats_service

router = APIRouter(prefix="/babies/{baby_id}", tags=["insights"])


@router.get("/stats", response_model=BabyStats)
async def get_stats(
    baby_id: int,
    db: DbDep,
    user: CurrentUserDep,
    days: int = Query(7, ge=1, le=90, description="Number of days, ending today"),
) -> BabyStats:
    """Daily feeding and sleep totals, diaper distribution, recent measurements."""
    return await stats_service.build_stats(db, user, baby_id, days=days)


@router.get("/activity", response_model=list[ActivityLog])
async def get_activity(
    baby_id: int,
    db: DbDep,
    user: CurrentUserDep,
    limit: int = Query(50, ge=1, le=500),
) -> list[ActivityLog]:
    """Return the change history of this baby, newest first."""
    return await activity_service.list_activity(db, user, baby_id, limit=limit)


@router.get("/export")
async def export_records(baby_id: int, db: DbDep, user: CurrentUserDep) -> JSONResponse:
    """Download every record of this baby as a JSON file."""
    export = await export_service.export_records(db, user, baby_id)
    filename = export_service.export_filename(export)
    return JSONResponse(
        content=export.model_dump(mode="json"),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

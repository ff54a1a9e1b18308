"""One-way JSON snapshot of every record of a baby."""

import aiosqlite

from app.models.collaboration import CurrentUser
from app.models.stats import RecordsExport
from app.services.database import utcnow
from app.services.diaper_service import diapers
from app.services.feeding_service import feedings
from app.services.health_service import health_records
from app.services.sleep_service import sleeps


async def export_records(db: aiosqlite.Connection, user: CurrentUser, baby_id: int) -> RecordsExport:
    """Collect all four record types as they are stored right now."""
    return RecordsExport(
        feeding=await feedings.list_records(db, user, baby_id),
        sleep=await sleeps.list_records(db, user, baby_id),
        diaper=await diapers.list_records(db, user, baby_id),
        health=await health_records.list_records(db, user, baby_id),
        export_date=utcnow(),
    )


def export_filename(export: RecordsExport) -> str:
    return f"baby-records-{export.export_date.date().isoformat()}.json"

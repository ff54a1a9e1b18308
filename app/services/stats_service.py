"""Aggregated statistics over a baby's records, for dashboards and charts."""

from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

import aiosqlite

from app.models.collaboration import CurrentUser
from app.models.health import Health
from app.models.stats import BabyStats, DailyFeeding, DailySleep, Measurement
from app.services.database import utcnow
from app.services.diaper_service import diapers
from app.services.feeding_service import feedings
from app.services.health_service import health_records
from app.services.sleep_service import sleeps

ML_PER_OZ = 29.5735
_MEASUREMENT_POINTS = 10


def _to_ml(amount: Optional[float], unit: str) -> float:
    if amount is None:
        return 0.0
    return amount * ML_PER_OZ if unit == "oz" else amount


def _latest(records: list[Health], kind: str) -> list[Measurement]:
    # records arrive newest first; charts want the last N, oldest first
    points = [r for r in records if r.type == kind][:_MEASUREMENT_POINTS]
    return [Measurement(timestamp=r.timestamp, value=r.value) for r in reversed(points)]


async def build_stats(
    db: aiosqlite.Connection,
    user: CurrentUser,
    baby_id: int,
    days: int = 7,
    today: Optional[date] = None,
) -> BabyStats:
    """Daily feeding and sleep totals for the last ``days`` days, plus distributions."""
    today = today or utcnow().date()
    first_day = today - timedelta(days=days - 1)
    start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(today, time.max, tzinfo=timezone.utc)

    window_feedings = await feedings.list_between(db, user, baby_id, start, end)
    window_sleeps = await sleeps.list_between(db, user, baby_id, start, end)
    all_diapers = await diapers.list_records(db, user, baby_id)
    all_health = await health_records.list_records(db, user, baby_id)

    day_list = [first_day + timedelta(days=i) for i in range(days)]

    feeding_stats = []
    for day in day_list:
        day_records = [f for f in window_feedings if f.timestamp.date() == day]
        feeding_stats.append(DailyFeeding(
            day=day,
            count=len(day_records),
            amount=round(sum(_to_ml(f.amount, f.unit) for f in day_records), 1),
        ))

    sleep_stats = []
    for day in day_list:
        minutes = sum(s.duration or 0 for s in window_sleeps if s.start_time.date() == day)
        sleep_stats.append(DailySleep(day=day, hours=round(minutes / 60, 2)))

    diaper_types = Counter(d.type for d in all_diapers)

    return BabyStats(
        baby_id=baby_id,
        days=days,
        feeding=feeding_stats,
        sleep=sleep_stats,
        diaper_types={t: diaper_types[t] for t in ("wet", "poop", "mixed") if diaper_types[t]},
        weight=_latest(all_health, "weight"),
        temperature=_latest(all_health, "temperature"),
    )

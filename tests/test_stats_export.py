"""Dashboard statistics and JSON export."""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.errors import NotFound
from app.models.diaper import DiaperCreate
from app.models.feeding import FeedingCreate
from app.models.health import HealthCreate
from app.models.sleep import SleepCreate
from app.services.diaper_service import add_diaper
from app.services.export_service import export_filename, export_records
from app.services.feeding_service import add_feeding
from app.services.health_service import add_health_record
from app.services.sleep_service import add_sleep
from app.services.stats_service import build_stats

pytestmark = pytest.mark.asyncio

TODAY = date(2024, 2, 7)


def _at(day: date, hour: int) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


async def test_daily_feeding_totals_in_ml(db, baby, owner):
    await add_feeding(db, owner, baby.id, FeedingCreate(timestamp=_at(TODAY, 8), type="formula", amount=100))
    await add_feeding(db, owner, baby.id, FeedingCreate(timestamp=_at(TODAY, 12), type="formula", amount=2, unit="oz"))
    await add_feeding(db, owner, baby.id, FeedingCreate(timestamp=_at(TODAY, 15), type="breast-left", duration=10))
    # Outside the window
    await add_feeding(db, owner, baby.id, FeedingCreate(timestamp=_at(TODAY - timedelta(days=7), 8), type="formula", amount=50))

    stats = await build_stats(db, owner, baby.id, days=7, today=TODAY)
    assert [d.day for d in stats.feeding] == [TODAY - timedelta(days=i) for i in range(6, -1, -1)]
    assert stats.feeding[-1].count == 3
    assert stats.feeding[-1].amount == pytest.approx(159.1)
    assert sum(d.count for d in stats.feeding) == 3


async def test_sleep_hours_by_start_day(db, baby, owner):
    start = _at(TODAY - timedelta(days=1), 22)
    await add_sleep(db, owner, baby.id, SleepCreate(start_time=start, end_time=start + timedelta(hours=9), type="night"))
    await add_sleep(db, owner, baby.id, SleepCreate(start_time=_at(TODAY, 13), type="nap"))

    stats = await build_stats(db, owner, baby.id, days=2, today=TODAY)
    assert [(d.day, d.hours) for d in stats.sleep] == [(TODAY - timedelta(days=1), 9.0), (TODAY, 0.0)]


async def test_diaper_distribution_and_measurements(db, baby, owner):
    for kind in ("wet", "wet", "poop"):
        await add_diaper(db, owner, baby.id, DiaperCreate(timestamp=_at(TODAY, 9), type=kind))
    for i in range(12):
        await add_health_record(
            db, owner, baby.id, HealthCreate(timestamp=_at(date(2024, 1, 1) + timedelta(days=i), 8), type="weight", value=3.5 + i / 10)
        )

    stats = await build_stats(db, owner, baby.id, today=TODAY)
    assert stats.diaper_types == {"wet": 2, "poop": 1}
    assert len(stats.weight) == 10
    assert stats.weight[0].value == pytest.approx(3.7)
    assert stats.weight[-1].value == pytest.approx(4.6)
    assert stats.temperature == []


async def test_export_contains_every_record_type(db, baby, viewer, owner):
    await add_feeding(db, owner, baby.id, FeedingCreate(timestamp=_at(TODAY, 8), type="formula", amount=100))
    await add_sleep(db, owner, baby.id, SleepCreate(start_time=_at(TODAY, 13), type="nap"))
    await add_diaper(db, owner, baby.id, DiaperCreate(timestamp=_at(TODAY, 9), type="wet"))
    await add_health_record(db, owner, baby.id, HealthCreate(timestamp=_at(TODAY, 7), type="temperature", value=37.1))

    export = await export_records(db, viewer, baby.id)
    assert (len(export.feeding), len(export.sleep), len(export.diaper), len(export.health)) == (1, 1, 1, 1)
    assert export_filename(export) == f"baby-records-{export.export_date.date().isoformat()}.json"
    dumped = export.model_dump(mode="json")
    assert set(dumped) == {"feeding", "sleep", "diaper", "health", "export_date"}
    assert dumped["health"][0]["unit"] == "°C"


async def test_export_requires_access(db, baby, stranger):
    with pytest.raises(NotFound):
        await export_records(db, stranger, baby.id)

"""Unit tests for diaper_service."""

from datetime import datetime, timedelta, timezone

import pytest

from app.errors import ValidationError
from app.models.diaper import DiaperCreate, DiaperUpdate
from app.services.diaper_service import (
    add_diaper,
    get_diapers_by_baby,
    get_diapers_by_datetime_range,
    update_diaper,
)

pytestmark = pytest.mark.asyncio

_AT = datetime(2024, 2, 1, 9, 15, tzinfo=timezone.utc)


async def test_add_poop_diaper(db, baby, editor):
    diaper = await add_diaper(
        db, editor, baby.id,
        DiaperCreate(timestamp=_AT, type="poop", poop_color="yellow", consistency="soft"),
    )
    assert diaper.poop_color == "yellow"
    assert diaper.consistency == "soft"


async def test_wet_diaper_without_details(db, baby, owner):
    diaper = await add_diaper(db, owner, baby.id, DiaperCreate(timestamp=_AT, type="wet"))
    assert diaper.poop_color is None
    assert [d.id for d in await get_diapers_by_baby(db, owner, baby.id)] == [diaper.id]


async def test_wet_diaper_rejects_poop_details(db, baby, owner):
    with pytest.raises(ValidationError):
        await add_diaper(db, owner, baby.id, DiaperCreate(timestamp=_AT, type="wet", poop_color="green"))
    assert await get_diapers_by_baby(db, owner, baby.id) == []


async def test_switching_to_wet_requires_clearing_details(db, baby, owner):
    diaper = await add_diaper(
        db, owner, baby.id, DiaperCreate(timestamp=_AT, type="mixed", consistency="liquid")
    )
    with pytest.raises(ValidationError):
        await update_diaper(db, owner, baby.id, diaper.id, DiaperUpdate(type="wet"))
    updated = await update_diaper(
        db, owner, baby.id, diaper.id, DiaperUpdate(type="wet", consistency=None)
    )
    assert updated.type == "wet"
    assert updated.consistency is None


async def test_unknown_color_rejected():
    with pytest.raises(ValueError):
        DiaperCreate(timestamp=_AT, type="poop", poop_color="purple")


async def test_get_diapers_by_datetime_range(db, baby, owner):
    inside = await add_diaper(db, owner, baby.id, DiaperCreate(timestamp=_AT, type="wet"))
    await add_diaper(db, owner, baby.id, DiaperCreate(timestamp=_AT + timedelta(days=2), type="poop"))
    found = await get_diapers_by_datetime_range(db, owner, baby.id, _AT - timedelta(hours=1), _AT + timedelta(hours=1))
    assert [d.id for d in found] == [inside.id]

"""Unit tests for health_service."""

from datetime import datetime, timedelta, timezone

import pytest

from app.errors import ValidationError
from app.models.health import HealthCreate, HealthUpdate
from app.services.health_service import (
    add_health_record,
    get_health_records_by_baby,
    get_health_records_by_datetime_range,
    update_health_record,
)

pytestmark = pytest.mark.asyncio

_AT = datetime(2024, 2, 1, 7, 0, tzinfo=timezone.utc)


async def test_unit_follows_type(db, baby, owner):
    weight = await add_health_record(db, owner, baby.id, HealthCreate(timestamp=_AT, type="weight", value=4.2))
    temp = await add_health_record(
        db, owner, baby.id, HealthCreate(timestamp=_AT, type="temperature", value=37.8, location="rectal")
    )
    head = await add_health_record(db, owner, baby.id, HealthCreate(timestamp=_AT, type="head", value=38))
    assert (weight.unit, temp.unit, head.unit) == ("kg", "°C", "cm")
    assert temp.location == "rectal"


async def test_unit_is_not_client_settable(db, baby, owner):
    record = await add_health_record(
        db, owner, baby.id, HealthCreate.model_validate(
            {"timestamp": _AT, "type": "height", "value": 55, "unit": "in"}
        )
    )
    assert record.unit == "cm"


async def test_changing_type_changes_unit(db, baby, owner):
    record = await add_health_record(db, owner, baby.id, HealthCreate(timestamp=_AT, type="height", value=55))
    updated = await update_health_record(
        db, owner, baby.id, record.id, HealthUpdate(type="weight", value=4.4)
    )
    assert updated.unit == "kg"


async def test_non_finite_value_rejected():
    with pytest.raises(ValueError):
        HealthCreate(timestamp=_AT, type="temperature", value=float("nan"))
    with pytest.raises(ValueError):
        HealthCreate(timestamp=_AT, type="weight", value=float("inf"))


async def test_location_only_for_temperature(db, baby, owner):
    with pytest.raises(ValidationError):
        await add_health_record(
            db, owner, baby.id, HealthCreate(timestamp=_AT, type="weight", value=4.2, location="ear")
        )
    assert await get_health_records_by_baby(db, owner, baby.id) == []


async def test_get_health_records_by_datetime_range(db, baby, owner):
    await add_health_record(db, owner, baby.id, HealthCreate(timestamp=_AT - timedelta(days=3), type="weight", value=4.0))
    recent = await add_health_record(db, owner, baby.id, HealthCreate(timestamp=_AT, type="weight", value=4.3))
    found = await get_health_records_by_datetime_range(db, owner, baby.id, _AT - timedelta(days=1), _AT)
    assert [r.id for r in found] == [recent.id]

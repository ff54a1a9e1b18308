"""Health measurements: temperature, weight, height and head circumference."""

import math
from typing import Any

from app.errors import ValidationError
from app.models.health import HEALTH_UNITS, Health
from app.services.record_service import RecordService


def _prepare_health(values: dict[str, Any]) -> dict[str, Any]:
    if not math.isfinite(values["value"]):
        raise ValidationError("Measurement value must be a finite number")
    if values.get("location") and values["type"] != "temperature":
        raise ValidationError("location only applies to temperature readings")
    # Unit is implied by the measurement type, never set by the client
    values["unit"] = HEALTH_UNITS[values["type"]]
    return values


health_records = RecordService(
    table="health_records",
    record_type="health",
    model=Health,
    columns=("timestamp", "type", "value", "location", "notes"),
    required=("timestamp", "type", "value"),
    order_by="timestamp",
    prepare=_prepare_health,
)

add_health_record = health_records.create
get_health_record = health_records.get
get_health_records_by_baby = health_records.list_records
get_health_records_by_datetime_range = health_records.list_between
update_health_record = health_records.update
delete_health_record = health_records.delete

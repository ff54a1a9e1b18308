"""Feeding records: breastfeeding sessions and bottles."""

import math
from typing import Any

from app.errors import ValidationError
from app.models.feeding import Feeding
from app.services.record_service import RecordService


def _prepare_feeding(values: dict[str, Any]) -> dict[str, Any]:
    amount = values.get("amount")
    if amount is not None and not (math.isfinite(amount) and amount > 0):
        raise ValidationError("Feeding amount must be a finite number greater than 0")
    return values


feedings = RecordService(
    table="feeding_records",
    record_type="feeding",
    model=Feeding,
    columns=("timestamp", "type", "amount", "unit", "duration", "notes"),
    required=("timestamp", "type", "unit"),
    order_by="timestamp",
    prepare=_prepare_feeding,
)

add_feeding = feedings.create
get_feeding = feedings.get
get_feedings_by_baby = feedings.list_records
get_feedings_by_datetime_range = feedings.list_between
update_feeding = feedings.update
delete_feeding = feedings.delete

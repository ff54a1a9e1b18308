"""Sleep records. Duration is always derived from start and end times."""

import math
from datetime import datetime
from typing import Any, Optional

from app.errors import ValidationError
from app.models.sleep import Sleep
from app.services.record_service import RecordService


def sleep_duration(start: datetime, end: Optional[datetime]) -> Optional[int]:
    """Whole minutes slept, or None while the sleep is still running."""
    if end is None:
        return None
    return math.floor((end - start).total_seconds() / 60)


def _prepare_sleep(values: dict[str, Any]) -> dict[str, Any]:
    start, end = values["start_time"], values.get("end_time")
    if end is not None and end < start:
        raise ValidationError("end_time must not be before start_time")
    values["duration"] = sleep_duration(start, end)
    return values


sleeps = RecordService(
    table="sleep_records",
    record_type="sleep",
    model=Sleep,
    columns=("start_time", "end_time", "type", "quality", "notes"),
    required=("start_time", "type"),
    order_by="start_time",
    prepare=_prepare_sleep,
)

add_sleep = sleeps.create
get_sleep = sleeps.get
get_sleeps_by_baby = sleeps.list_records
get_sleeps_by_datetime_range = sleeps.list_between
update_sleep = sleeps.update
delete_sleep = sleeps.delete

"""Diaper changes (wet / poop / mixed)."""

from typing import Any

from app.errors import ValidationError
from app.models.diaper import Diaper
from app.services.record_service import RecordService


def _prepare_diaper(values: dict[str, Any]) -> dict[str, Any]:
    if values["type"] == "wet" and (values.get("poop_color") or values.get("consistency")):
        raise ValidationError("poop_color and consistency only apply to poop or mixed diapers")
    return values


diapers = RecordService(
    table="diaper_records",
    record_type="diaper",
    model=Diaper,
    columns=("timestamp", "type", "poop_color", "consistency", "notes"),
    required=("timestamp", "type"),
    order_by="timestamp",
    prepare=_prepare_diaper,
)

add_diaper = diapers.create
get_diaper = diapers.get
get_diapers_by_baby = diapers.list_records
get_diapers_by_datetime_range = diapers.list_between
update_diaper = diapers.update
delete_diaper = diapers.delete

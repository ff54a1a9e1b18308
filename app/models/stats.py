"""Aggregated statistics and export snapshot."""

from datetime import date, datetime

from pydantic import BaseModel

from app.models.diaper import Diaper
from app.models.feeding import Feeding
from app.models.health import Health
from app.models.sleep import Sleep


class DailyFeeding(BaseModel):
    day: date
    count: int
    amount: float


class DailySleep(BaseModel):
    day: date
    hours: float


class Measurement(BaseModel):
    timestamp: datetime
    value: float


class BabyStats(BaseModel):
    baby_id: int
    days: int
    feeding: list[DailyFeeding]
    sleep: list[DailySleep]
    diaper_types: dict[str, int]
    weight: list[Measurement]
    temperature: list[Measurement]


class RecordsExport(BaseModel):
    """Point-in-time dump of every record of one baby. Not an import format."""
    feeding: list[Feeding]
    sleep: list[Sleep]
    diaper: list[Diaper]
    health: list[Health]
    export_date: datetime

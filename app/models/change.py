"""Store-level change notifications delivered over realtime channels."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel

ChangeType = Literal["INSERT", "UPDATE", "DELETE"]
ChangeTable = Literal[
    "feeding_records", "sleep_records", "diaper_records", "health_records",
    "baby_collaborators", "babies",
]


class ChangeEvent(BaseModel):
    event_type: ChangeType
    table: ChangeTable
    baby_id: int
    new: Optional[dict[str, Any]] = None
    old: Optional[dict[str, Any]] = None
    commit_timestamp: datetime

    @property
    def channel(self) -> str:
        return f"{self.table}:{self.baby_id}"

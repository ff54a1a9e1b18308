from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel

ActivityAction = Literal["created", "updated", "deleted"]
ActivityRecordType = Literal["feeding", "sleep", "diaper", "health", "baby", "collaborator"]


class ActivityLog(BaseModel):
    """Append-only trace of a mutation, shown in the activity feed."""
    id: int
    baby_id: int
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    action: ActivityAction
    record_type: ActivityRecordType
    record_id: Optional[int] = None
    changes: Optional[dict[str, Any]] = None
    created_at: datetime

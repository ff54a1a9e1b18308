"""Append-only activity log written alongside every mutation."""

import json
from typing import Any, Optional

import aiosqlite

from app.models.activity import ActivityAction, ActivityLog, ActivityRecordType
from app.models.collaboration import CurrentUser
from app.services import access_control
from app.services.database import from_iso, utcnow


def _row_to_activity(row: aiosqlite.Row) -> ActivityLog:
    return ActivityLog(
        id=row["id"],
        baby_id=row["baby_id"],
        user_id=row["user_id"],
        user_email=row["user_email"],
        action=row["action"],
        record_type=row["record_type"],
        record_id=row["record_id"],
        changes=json.loads(row["changes"]) if row["changes"] else None,
        created_at=from_iso(row["created_at"]),
    )


async def log_activity(
    db: aiosqlite.Connection,
    baby_id: int,
    user: Optional[CurrentUser],
    action: ActivityAction,
    record_type: ActivityRecordType,
    record_id: Optional[int] = None,
    changes: Optional[dict[str, Any]] = None,
) -> None:
    """Append an entry. Does not commit: callers run it inside their transaction."""
    await db.execute(
        """INSERT INTO activity_logs
               (baby_id, user_id, user_email, action, record_type, record_id, changes, created_at)
           VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            baby_id,
            user.id if user else None,
            user.email if user else None,
            action,
            record_type,
            record_id,
            json.dumps(changes, ensure_ascii=False, default=str) if changes is not None else None,
            utcnow().isoformat(),
        ),
    )


async def list_activity(
    db: aiosqlite.Connection, user: CurrentUser, baby_id: int, limit: int = 50
) -> list[ActivityLog]:
    """Return the most recent activity for a baby, newest first."""
    await access_control.require_access(db, user, baby_id)
    rows = await db.execute_fetchall(
        """SELECT * FROM activity_logs
           WHERE baby_id = ?
           ORDER BY created_at DESC, id DESC
           LIMIT ?""",
        (baby_id, limit),
    )
    return [_row_to_activity(r) for r in rows]

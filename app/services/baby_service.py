"""Async CRUD operations for babies, scoped to the caller's grants."""

import logging
from typing import Optional

import aiosqlite

from app.errors import PermissionDenied
from app.models.baby import Baby, BabyCreate, BabyUpdate, BabyWithRole
from app.models.change import ChangeEvent
from app.models.collaboration import CurrentUser, Role
from app.realtime import hub
from app.services import access_control
from app.services.activity_service import log_activity
from app.services.database import from_iso, transaction, utcnow

logger = logging.getLogger(__name__)


def _row_to_baby(row: aiosqlite.Row) -> Baby:
    return Baby(
        id=row["id"],
        name=row["name"],
        birth_date=row["birth_date"],
        gender=row["gender"],
        photo=row["photo"],
        created_by=row["created_by"],
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
    )


async def create_baby(db: aiosqlite.Connection, user: CurrentUser, baby: BabyCreate) -> Baby:
    """Insert a baby and its owner grant in one transaction."""
    now = utcnow().isoformat()
    async with transaction(db):
        cursor = await db.execute(
            """INSERT INTO babies (name, birth_date, gender, photo, created_by, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (baby.name, baby.birth_date.isoformat(), baby.gender, baby.photo, user.id, now, now),
        )
        baby_id = cursor.lastrowid
        await db.execute(
            """INSERT INTO baby_collaborators
                   (baby_id, user_id, user_email, role, status, invited_by, invited_at, accepted_at, created_at)
               VALUES (?, ?, ?, 'owner', 'accepted', ?, ?, ?, ?)""",
            (baby_id, user.id, user.email, user.id, now, now, now),
        )
        await log_activity(db, baby_id, user, "created", "baby", baby_id, {"name": baby.name})

    logger.info("User %s created baby %s", user.id, baby_id)
    return await _fetch_baby(db, baby_id)


async def _fetch_baby(db: aiosqlite.Connection, baby_id: int) -> Optional[Baby]:
    async with db.execute("SELECT * FROM babies WHERE id = ?", (baby_id,)) as cur:
        row = await cur.fetchone()
    return _row_to_baby(row) if row else None


async def get_baby(db: aiosqlite.Connection, user: CurrentUser, baby_id: int) -> Baby:
    """Return a baby the caller has access to, or raise NotFound."""
    await access_control.require_access(db, user, baby_id)
    return await _fetch_baby(db, baby_id)


async def list_babies(db: aiosqlite.Connection, user: CurrentUser) -> list[BabyWithRole]:
    """Return every baby the caller collaborates on, most recently created first."""
    rows = await db.execute_fetchall(
        """SELECT b.*, c.role AS role FROM babies b
           JOIN baby_collaborators c
             ON c.baby_id = b.id AND c.user_id = ? AND c.status = 'accepted'
           ORDER BY b.created_at DESC, b.id DESC""",
        (user.id,),
    )
    return [
        BabyWithRole(**_row_to_baby(r).model_dump(), role=access_control.parse_role(r["role"]))
        for r in rows
    ]


async def update_baby(
    db: aiosqlite.Connection, user: CurrentUser, baby_id: int, data: BabyUpdate
) -> Baby:
    """Update provided fields (owner or editor) and return the updated baby."""
    await access_control.require_editor(db, user, baby_id)
    updates = data.model_dump(exclude_unset=True)
    updates = {k: v for k, v in updates.items() if v is not None or k in ("gender", "photo")}
    if not updates:
        return await _fetch_baby(db, baby_id)

    # Serialize dates
    if "birth_date" in updates:
        updates["birth_date"] = updates["birth_date"].isoformat()
    updates["updated_at"] = utcnow().isoformat()

    cols = ", ".join(f"{k} = ?" for k in updates)
    values = list(updates.values()) + [baby_id]
    async with transaction(db):
        await db.execute(f"UPDATE babies SET {cols} WHERE id = ?", values)
        changes = {k: v for k, v in updates.items() if k != "updated_at"}
        await log_activity(db, baby_id, user, "updated", "baby", baby_id, changes)

    baby = await _fetch_baby(db, baby_id)
    hub.publish(ChangeEvent(
        event_type="UPDATE",
        table="babies",
        baby_id=baby_id,
        new=baby.model_dump(mode="json"),
        commit_timestamp=utcnow(),
    ))
    return baby


async def delete_baby(db: aiosqlite.Connection, user: CurrentUser, baby_id: int) -> None:
    """Delete a baby (owner only). Records, grants and invitations cascade."""
    role = await access_control.require_access(db, user, baby_id)
    if role != Role.OWNER:
        raise PermissionDenied("Only the owner can delete a baby")

    async with transaction(db):
        await db.execute("DELETE FROM babies WHERE id = ?", (baby_id,))

    logger.info("User %s deleted baby %s", user.id, baby_id)
    hub.publish(ChangeEvent(
        event_type="DELETE",
        table="babies",
        baby_id=baby_id,
        old={"id": baby_id},
        commit_timestamp=utcnow(),
    ))

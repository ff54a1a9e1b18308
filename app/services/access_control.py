"""Per-baby role resolution and collaborator management.

Every mutation in the service layer goes through ``require_editor`` or
``require_owner`` before touching the store. ``None`` from ``resolve_role``
means "no access", never "viewer".
"""

import logging
from typing import Optional

import aiosqlite

from app.errors import NotFound, PermissionDenied, StoreError, ValidationError
from app.models.change import ChangeEvent
from app.models.collaboration import Collaborator, CollaboratorStatus, CurrentUser, Role
from app.realtime import hub
from app.services.database import from_iso, transaction, utcnow

logger = logging.getLogger(__name__)


def parse_role(value: str) -> Role:
    """Map a stored role string onto the closed Role enumeration."""
    try:
        return Role(value)
    except ValueError as exc:
        raise StoreError(f"Unknown collaborator role {value!r}") from exc


def can_edit(role: Optional[Role]) -> bool:
    return role in (Role.OWNER, Role.EDITOR)


def can_manage_collaborators(role: Optional[Role]) -> bool:
    return role == Role.OWNER


def _row_to_collaborator(row: aiosqlite.Row) -> Collaborator:
    return Collaborator(
        id=row["id"],
        baby_id=row["baby_id"],
        user_id=row["user_id"],
        user_email=row["user_email"],
        role=parse_role(row["role"]),
        status=CollaboratorStatus(row["status"]),
        invited_by=row["invited_by"],
        invited_at=from_iso(row["invited_at"]),
        accepted_at=from_iso(row["accepted_at"]),
        created_at=from_iso(row["created_at"]),
    )


async def resolve_role(db: aiosqlite.Connection, baby_id: int, user_id: str) -> Optional[Role]:
    """Return the caller's role on a baby, or None without an accepted grant."""
    async with db.execute(
        """SELECT role FROM baby_collaborators
           WHERE baby_id = ? AND user_id = ? AND status = 'accepted'""",
        (baby_id, user_id),
    ) as cur:
        row = await cur.fetchone()
    return parse_role(row["role"]) if row else None


async def require_access(db: aiosqlite.Connection, user: CurrentUser, baby_id: int) -> Role:
    """Resolve the caller's role; babies without a grant look like missing babies."""
    role = await resolve_role(db, baby_id, user.id)
    if role is None:
        raise NotFound(f"Baby {baby_id} not found")
    return role


async def require_editor(db: aiosqlite.Connection, user: CurrentUser, baby_id: int) -> Role:
    role = await require_access(db, user, baby_id)
    if not can_edit(role):
        logger.warning("User %s (%s) denied edit on baby %s", user.id, role.value, baby_id)
        raise PermissionDenied("Viewers cannot add, change or delete records")
    return role


async def require_owner(db: aiosqlite.Connection, user: CurrentUser, baby_id: int) -> Role:
    role = await require_access(db, user, baby_id)
    if not can_manage_collaborators(role):
        logger.warning("User %s (%s) denied collaborator management on baby %s", user.id, role.value, baby_id)
        raise PermissionDenied("Only the owner can manage collaborators")
    return role


async def get_collaborator(
    db: aiosqlite.Connection, baby_id: int, user_id: str
) -> Optional[Collaborator]:
    """Return the collaborator row for (baby, user) in any status, or None."""
    async with db.execute(
        "SELECT * FROM baby_collaborators WHERE baby_id = ? AND user_id = ?",
        (baby_id, user_id),
    ) as cur:
        row = await cur.fetchone()
    return _row_to_collaborator(row) if row else None


async def count_owners(db: aiosqlite.Connection, baby_id: int) -> int:
    async with db.execute(
        """SELECT COUNT(*) FROM baby_collaborators
           WHERE baby_id = ? AND role = 'owner' AND status = 'accepted'""",
        (baby_id,),
    ) as cur:
        row = await cur.fetchone()
    return row[0]


async def list_collaborators(
    db: aiosqlite.Connection, user: CurrentUser, baby_id: int
) -> list[Collaborator]:
    """Return accepted collaborators of a baby, oldest grant first."""
    await require_access(db, user, baby_id)
    rows = await db.execute_fetchall(
        """SELECT * FROM baby_collaborators
           WHERE baby_id = ? AND status = 'accepted'
           ORDER BY created_at, id""",
        (baby_id,),
    )
    return [_row_to_collaborator(r) for r in rows]


def _publish(event_type: str, collaborator: Collaborator, old: Optional[Collaborator] = None) -> None:
    hub.publish(ChangeEvent(
        event_type=event_type,
        table="baby_collaborators",
        baby_id=collaborator.baby_id,
        new=collaborator.model_dump(mode="json") if event_type != "DELETE" else None,
        old=(old or collaborator).model_dump(mode="json") if event_type != "INSERT" else None,
        commit_timestamp=utcnow(),
    ))


async def update_collaborator_role(
    db: aiosqlite.Connection,
    user: CurrentUser,
    baby_id: int,
    target_user_id: str,
    role: Role,
) -> Collaborator:
    """Switch another caregiver between editor and viewer (owner only)."""
    from app.services.activity_service import log_activity

    await require_owner(db, user, baby_id)
    if role == Role.OWNER:
        raise ValidationError("The owner role cannot be granted; ownership transfer is not supported")
    if target_user_id == user.id:
        raise PermissionDenied("You cannot change your own role")

    target = await get_collaborator(db, baby_id, target_user_id)
    if target is None or target.status != CollaboratorStatus.ACCEPTED:
        raise NotFound(f"Collaborator {target_user_id} not found")
    if target.role == Role.OWNER:
        raise PermissionDenied("The owner's role cannot be changed")
    if target.role == role:
        return target

    async with transaction(db):
        await db.execute(
            "UPDATE baby_collaborators SET role = ? WHERE id = ?",
            (role.value, target.id),
        )
        await log_activity(
            db, baby_id, user, "updated", "collaborator", target.id,
            {"user_id": target_user_id, "role": {"from": target.role.value, "to": role.value}},
        )

    updated = target.model_copy(update={"role": role})
    logger.info("Baby %s: %s is now %s", baby_id, target_user_id, role.value)
    _publish("UPDATE", updated, old=target)
    return updated


async def remove_collaborator(
    db: aiosqlite.Connection, user: CurrentUser, baby_id: int, target_user_id: str
) -> None:
    """Revoke a grant. The owner removes anyone but themselves; others may only leave."""
    from app.services.activity_service import log_activity

    role = await require_access(db, user, baby_id)
    target = await get_collaborator(db, baby_id, target_user_id)
    if target is None or target.status != CollaboratorStatus.ACCEPTED:
        raise NotFound(f"Collaborator {target_user_id} not found")
    if target_user_id != user.id and not can_manage_collaborators(role):
        raise PermissionDenied("Only the owner can remove other collaborators")
    # Owner rows are permanent: a baby always keeps at least one owner
    if target.role == Role.OWNER:
        raise PermissionDenied("The owner cannot be removed")

    async with transaction(db):
        await db.execute("DELETE FROM baby_collaborators WHERE id = ?", (target.id,))
        await log_activity(
            db, baby_id, user, "deleted", "collaborator", target.id,
            {"user_id": target_user_id, "role": target.role.value},
        )

    logger.info("Baby %s: removed collaborator %s", baby_id, target_user_id)
    _publish("DELETE", target)

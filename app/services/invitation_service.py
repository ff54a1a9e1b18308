"""Invitation lifecycle: create, fetch, accept, decline, cancel, resend.

Expiry is computed on read: a row still marked ``pending`` whose
``expires_at`` has passed is inert. Acceptance writes the collaborator grant
and the invitation status in a single transaction.
"""

import logging
import os
import secrets
from datetime import datetime, timedelta
from typing import Optional

import aiosqlite
from email_validator import EmailNotValidError, validate_email

from app.errors import (
    AlreadyCollaborator,
    EmailMismatch,
    InvitationExpired,
    InvitationNotFound,
    NotFound,
    ValidationError,
)
from app.models.change import ChangeEvent
from app.models.collaboration import CollaboratorStatus, CurrentUser, Role
from app.models.invitation import (
    AcceptResult,
    Invitation,
    InvitationBaby,
    InvitationDetails,
    InvitationStatus,
)
from app.realtime import hub
from app.services import access_control
from app.services.activity_service import log_activity
from app.services.database import from_iso, transaction, utcnow

logger = logging.getLogger(__name__)

INVITE_BASE_URL = os.getenv("INVITE_BASE_URL", "http://localhost:5173")
INVITE_TTL_DAYS = int(os.getenv("INVITE_TTL_DAYS", "7"))


def invitation_link(token: str) -> str:
    """Shareable URL that opens the invitation page."""
    return f"{INVITE_BASE_URL.rstrip('/')}/invite/{token}"


def sign_in_url(token: str) -> str:
    """Where unauthenticated visitors go; they come back to the invitation after."""
    return f"/auth?redirect=/invite/{token}"


def _is_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    return (now or utcnow()) > expires_at


def _row_to_invitation(row: aiosqlite.Row) -> Invitation:
    expires_at = from_iso(row["expires_at"])
    return Invitation(
        id=row["id"],
        baby_id=row["baby_id"],
        email=row["email"],
        role=row["role"],
        token=row["token"],
        invited_by=row["invited_by"],
        status=InvitationStatus(row["status"]),
        created_at=from_iso(row["created_at"]),
        expires_at=expires_at,
        accepted_at=from_iso(row["accepted_at"]),
        is_expired=row["status"] == "pending" and _is_expired(expires_at),
        link=invitation_link(row["token"]),
    )


def normalize_email(email: str) -> str:
    """Validate an email address and return it lowercased."""
    try:
        result = validate_email(email, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError(f"Invalid email address: {exc}") from exc
    return result.normalized.lower()


async def _get_by_token(db: aiosqlite.Connection, token: str) -> Optional[aiosqlite.Row]:
    async with db.execute("SELECT * FROM invitations WHERE token = ?", (token,)) as cur:
        return await cur.fetchone()


async def _get_for_baby(
    db: aiosqlite.Connection, baby_id: int, invitation_id: int
) -> Invitation:
    async with db.execute(
        "SELECT * FROM invitations WHERE id = ? AND baby_id = ?", (invitation_id, baby_id)
    ) as cur:
        row = await cur.fetchone()
    if row is None:
        raise NotFound(f"Invitation {invitation_id} not found")
    return _row_to_invitation(row)


async def create_invitation(
    db: aiosqlite.Connection,
    user: CurrentUser,
    baby_id: int,
    email: str,
    role: str,
) -> Invitation:
    """Invite an email address to a baby as editor or viewer (owner only)."""
    await access_control.require_owner(db, user, baby_id)
    if role not in (Role.EDITOR.value, Role.VIEWER.value):
        raise ValidationError("Invitations can only grant the editor or viewer role")
    email = normalize_email(email)

    async with db.execute(
        """SELECT 1 FROM baby_collaborators
           WHERE baby_id = ? AND lower(user_email) = ? AND status = 'accepted'""",
        (baby_id, email),
    ) as cur:
        if await cur.fetchone():
            raise AlreadyCollaborator(f"{email} already has access to this baby")

    now = utcnow()
    async with db.execute(
        """SELECT 1 FROM invitations
           WHERE baby_id = ? AND email = ? AND status = 'pending' AND expires_at >= ?""",
        (baby_id, email, now.isoformat()),
    ) as cur:
        if await cur.fetchone():
            raise ValidationError(f"{email} already has a pending invitation; resend it instead")

    token = secrets.token_urlsafe(32)
    expires_at = now + timedelta(days=INVITE_TTL_DAYS)
    async with transaction(db):
        cursor = await db.execute(
            """INSERT INTO invitations
                   (baby_id, email, role, token, invited_by, status, created_at, expires_at)
               VALUES (?, ?, ?, ?, ?, 'pending', ?, ?)""",
            (baby_id, email, role, token, user.id, now.isoformat(), expires_at.isoformat()),
        )
        invitation_id = cursor.lastrowid

    logger.info("Baby %s: invited %s as %s", baby_id, email, role)
    return await _get_for_baby(db, baby_id, invitation_id)


async def list_invitations(
    db: aiosqlite.Connection, user: CurrentUser, baby_id: int
) -> list[Invitation]:
    """Return pending invitations of a baby, newest first (owner only)."""
    await access_control.require_owner(db, user, baby_id)
    rows = await db.execute_fetchall(
        """SELECT * FROM invitations
           WHERE baby_id = ? AND status = 'pending'
           ORDER BY created_at DESC, id DESC""",
        (baby_id,),
    )
    return [_row_to_invitation(r) for r in rows]


async def fetch_invitation(db: aiosqlite.Connection, token: str) -> InvitationDetails:
    """Resolve an invitation link. Works without authentication."""
    row = await _get_by_token(db, token)
    if row is None or row["status"] != InvitationStatus.PENDING.value:
        raise InvitationNotFound()
    invitation = _row_to_invitation(row)
    if invitation.is_expired:
        raise InvitationExpired()

    async with db.execute(
        "SELECT id, name, birth_date FROM babies WHERE id = ?", (invitation.baby_id,)
    ) as cur:
        baby = await cur.fetchone()
    return InvitationDetails(
        email=invitation.email,
        role=invitation.role,
        expires_at=invitation.expires_at,
        baby=InvitationBaby(id=baby["id"], name=baby["name"], birth_date=baby["birth_date"]),
    )


async def _load_pending(db: aiosqlite.Connection, token: str, user: CurrentUser) -> Invitation:
    row = await _get_by_token(db, token)
    if row is None or row["status"] != InvitationStatus.PENDING.value:
        raise InvitationNotFound()
    invitation = _row_to_invitation(row)
    if invitation.is_expired:
        raise InvitationExpired()
    if (user.email or "").lower() != invitation.email:
        raise EmailMismatch(
            f"This invitation was sent to {invitation.email}; sign in with that account"
        )
    return invitation


async def accept_invitation(
    db: aiosqlite.Connection, token: str, user: CurrentUser
) -> AcceptResult:
    """Turn a pending invitation into an accepted collaborator grant.

    Accepting again once the grant exists is a no-op reported through
    ``already_collaborator``, so the client can simply redirect. A pending
    invitation is still marked accepted so it leaves the owner's list.
    """
    row = await _get_by_token(db, token)
    if row is not None:
        existing = await access_control.get_collaborator(db, row["baby_id"], user.id)
        if existing is not None and existing.status == CollaboratorStatus.ACCEPTED:
            if (user.email or "").lower() != row["email"]:
                raise EmailMismatch(
                    f"This invitation was sent to {row['email']}; sign in with that account"
                )
            if row["status"] == InvitationStatus.PENDING.value:
                # Access already granted another way; retire the invitation
                async with transaction(db):
                    await db.execute(
                        """UPDATE invitations SET status = 'accepted', accepted_at = ?
                           WHERE id = ? AND status = 'pending'""",
                        (utcnow().isoformat(), row["id"]),
                    )
            return AcceptResult(
                baby_id=row["baby_id"], role=row["role"], already_collaborator=True
            )

    invitation = await _load_pending(db, token, user)
    try:
        collaborator = await _grant(db, invitation, user)
    except InvitationNotFound:
        # Lost a race with a concurrent accept of the same token
        existing = await access_control.get_collaborator(db, invitation.baby_id, user.id)
        if existing is not None and existing.status == CollaboratorStatus.ACCEPTED:
            return AcceptResult(
                baby_id=invitation.baby_id, role=invitation.role, already_collaborator=True
            )
        raise

    logger.info("Baby %s: %s accepted invitation %s", invitation.baby_id, user.id, invitation.id)
    hub.publish(ChangeEvent(
        event_type="INSERT",
        table="baby_collaborators",
        baby_id=invitation.baby_id,
        new=collaborator.model_dump(mode="json"),
        commit_timestamp=utcnow(),
    ))
    return AcceptResult(baby_id=invitation.baby_id, role=invitation.role)


async def _grant(db: aiosqlite.Connection, invitation: Invitation, user: CurrentUser):
    now = utcnow().isoformat()
    async with transaction(db):
        # Activates an earlier declined/pending row instead of duplicating it
        await db.execute(
            """INSERT INTO baby_collaborators
                   (baby_id, user_id, user_email, role, status, invited_by, invited_at, accepted_at, created_at)
               VALUES (?, ?, ?, ?, 'accepted', ?, ?, ?, ?)
               ON CONFLICT (baby_id, user_id) DO UPDATE SET
                   role = excluded.role,
                   status = 'accepted',
                   user_email = excluded.user_email,
                   invited_by = excluded.invited_by,
                   invited_at = excluded.invited_at,
                   accepted_at = excluded.accepted_at
               WHERE baby_collaborators.status != 'accepted'""",
            (
                invitation.baby_id, user.id, user.email, invitation.role,
                invitation.invited_by, invitation.created_at.isoformat(), now, now,
            ),
        )
        cursor = await db.execute(
            """UPDATE invitations SET status = 'accepted', accepted_at = ?
               WHERE id = ? AND status = 'pending'""",
            (now, invitation.id),
        )
        if cursor.rowcount != 1:
            # Consumed concurrently; the grant above is rolled back with it
            raise InvitationNotFound()
        collaborator = await access_control.get_collaborator(db, invitation.baby_id, user.id)
        await log_activity(
            db, invitation.baby_id, user, "created", "collaborator", collaborator.id,
            {"user_id": user.id, "role": invitation.role, "invitation_id": invitation.id},
        )
    return collaborator


async def decline_invitation(db: aiosqlite.Connection, token: str, user: CurrentUser) -> None:
    """The invitee turns the invitation down; it can no longer be used."""
    invitation = await _load_pending(db, token, user)
    async with transaction(db):
        await db.execute(
            "UPDATE invitations SET status = 'cancelled' WHERE id = ? AND status = 'pending'",
            (invitation.id,),
        )
    logger.info("Baby %s: invitation %s declined", invitation.baby_id, invitation.id)


async def cancel_invitation(
    db: aiosqlite.Connection, user: CurrentUser, baby_id: int, invitation_id: int
) -> Invitation:
    """Withdraw a pending invitation (owner only)."""
    await access_control.require_owner(db, user, baby_id)
    invitation = await _get_for_baby(db, baby_id, invitation_id)
    if invitation.status != InvitationStatus.PENDING:
        raise ValidationError(f"Invitation is already {invitation.status.value}")

    async with transaction(db):
        await db.execute(
            "UPDATE invitations SET status = 'cancelled' WHERE id = ?", (invitation_id,)
        )
    logger.info("Baby %s: invitation %s cancelled", baby_id, invitation_id)
    return await _get_for_baby(db, baby_id, invitation_id)


async def resend_invitation(
    db: aiosqlite.Connection, user: CurrentUser, baby_id: int, invitation_id: int
) -> Invitation:
    """Push the expiry to now + TTL; the token and link stay the same (owner only)."""
    await access_control.require_owner(db, user, baby_id)
    invitation = await _get_for_baby(db, baby_id, invitation_id)
    if invitation.status != InvitationStatus.PENDING:
        raise ValidationError(f"Cannot resend an invitation that is already {invitation.status.value}")

    expires_at = utcnow() + timedelta(days=INVITE_TTL_DAYS)
    if expires_at <= invitation.expires_at:
        expires_at = invitation.expires_at + timedelta(microseconds=1)
    async with transaction(db):
        await db.execute(
            "UPDATE invitations SET expires_at = ? WHERE id = ?",
            (expires_at.isoformat(), invitation_id),
        )
    logger.info("Baby %s: invitation %s resent, expires %s", baby_id, invitation_id, expires_at)
    return await _get_for_baby(db, baby_id, invitation_id)

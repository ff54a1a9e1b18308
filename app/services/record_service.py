"""Generic async CRUD for baby-scoped care records.

Feeding, sleep, diaper and health records share one lifecycle: every read is
joined on the caller's accepted collaborator row, every write is gated by the
caller's role, logged to ``activity_logs`` in the same transaction, and then
published on the record table's realtime channel.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

import aiosqlite
from pydantic import BaseModel

from app.errors import NotFound, ValidationError
from app.models.activity import ActivityRecordType
from app.models.change import ChangeEvent
from app.models.collaboration import CurrentUser
from app.realtime import hub
from app.services import access_control
from app.services.activity_service import log_activity
from app.services.database import transaction, utcnow

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

# Validates merged field values and returns the columns to store
Prepare = Callable[[dict[str, Any]], dict[str, Any]]


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class RecordService(Generic[RecordT]):
    def __init__(
        self,
        *,
        table: str,
        record_type: ActivityRecordType,
        model: type[RecordT],
        columns: Sequence[str],
        required: Sequence[str],
        order_by: str,
        prepare: Optional[Prepare] = None,
    ) -> None:
        self.table = table
        self.record_type = record_type
        self.model = model
        self.columns = tuple(columns)
        self.required = tuple(required)
        self.order_by = order_by
        self._prepare = prepare or (lambda values: values)

    def __repr__(self) -> str:
        return f"<RecordService {self.table}>"

    def _row_to_record(self, row: aiosqlite.Row) -> RecordT:
        return self.model.model_validate(dict(row))

    def prepare(self, values: dict[str, Any]) -> dict[str, Any]:
        missing = [c for c in self.required if values.get(c) is None]
        if missing:
            raise ValidationError(f"{', '.join(missing)} cannot be empty")
        return self._prepare(dict(values))

    # ── Reads ────────────────────────────────────────────────────────────

    async def _fetch(
        self, db: aiosqlite.Connection, user: CurrentUser, baby_id: int, record_id: int
    ) -> Optional[RecordT]:
        async with db.execute(
            f"""SELECT r.* FROM {self.table} r
                JOIN baby_collaborators c
                  ON c.baby_id = r.baby_id AND c.user_id = ? AND c.status = 'accepted'
                WHERE r.id = ? AND r.baby_id = ?""",
            (user.id, record_id, baby_id),
        ) as cur:
            row = await cur.fetchone()
        return self._row_to_record(row) if row else None

    async def get(
        self, db: aiosqlite.Connection, user: CurrentUser, baby_id: int, record_id: int
    ) -> RecordT:
        """Return one record of the baby, or raise NotFound."""
        await access_control.require_access(db, user, baby_id)
        record = await self._fetch(db, user, baby_id, record_id)
        if record is None:
            raise NotFound(f"{self.record_type.capitalize()} {record_id} not found")
        return record

    async def list_records(
        self, db: aiosqlite.Connection, user: CurrentUser, baby_id: int
    ) -> list[RecordT]:
        """Return all records of a baby, most recent first."""
        await access_control.require_access(db, user, baby_id)
        rows = await db.execute_fetchall(
            f"""SELECT r.* FROM {self.table} r
                JOIN baby_collaborators c
                  ON c.baby_id = r.baby_id AND c.user_id = ? AND c.status = 'accepted'
                WHERE r.baby_id = ?
                ORDER BY r.{self.order_by} DESC, r.id DESC""",
            (user.id, baby_id),
        )
        return [self._row_to_record(r) for r in rows]

    async def list_between(
        self,
        db: aiosqlite.Connection,
        user: CurrentUser,
        baby_id: int,
        start: datetime,
        end: datetime,
    ) -> list[RecordT]:
        """Return records whose primary timestamp lies in [start, end], oldest first."""
        await access_control.require_access(db, user, baby_id)
        rows = await db.execute_fetchall(
            f"""SELECT r.* FROM {self.table} r
                JOIN baby_collaborators c
                  ON c.baby_id = r.baby_id AND c.user_id = ? AND c.status = 'accepted'
                WHERE r.baby_id = ?
                  AND r.{self.order_by} >= ?
                  AND r.{self.order_by} <= ?
                ORDER BY r.{self.order_by}, r.id""",
            (user.id, baby_id, start.isoformat(), end.isoformat()),
        )
        return [self._row_to_record(r) for r in rows]

    # ── Writes ───────────────────────────────────────────────────────────

    def _publish(self, event_type: str, baby_id: int, new=None, old=None) -> None:
        hub.publish(ChangeEvent(
            event_type=event_type,
            table=self.table,
            baby_id=baby_id,
            new=new.model_dump(mode="json") if new is not None else None,
            old=old.model_dump(mode="json") if old is not None else None,
            commit_timestamp=utcnow(),
        ))

    async def create(
        self, db: aiosqlite.Connection, user: CurrentUser, baby_id: int, payload: BaseModel
    ) -> RecordT:
        """Insert a record for the baby (owner or editor) and return it."""
        await access_control.require_editor(db, user, baby_id)
        values = self.prepare(payload.model_dump())
        now = utcnow().isoformat()
        cols = list(values)
        async with transaction(db):
            cursor = await db.execute(
                f"""INSERT INTO {self.table}
                        (baby_id, user_id, {', '.join(cols)}, created_at, updated_at)
                    VALUES (?, ?, {', '.join('?' for _ in cols)}, ?, ?)""",
                (baby_id, user.id, *(_encode(values[c]) for c in cols), now, now),
            )
            record_id = cursor.lastrowid
            await log_activity(
                db, baby_id, user, "created", self.record_type, record_id,
                {c: _encode(values[c]) for c in cols},
            )

        record = await self._fetch(db, user, baby_id, record_id)
        self._publish("INSERT", baby_id, new=record)
        return record

    async def update(
        self,
        db: aiosqlite.Connection,
        user: CurrentUser,
        baby_id: int,
        record_id: int,
        payload: BaseModel,
    ) -> RecordT:
        """Apply the fields set in ``payload`` (owner or editor).

        The record must belong to ``baby_id``; ids of other babies look missing.
        """
        await access_control.require_editor(db, user, baby_id)
        existing = await self._fetch(db, user, baby_id, record_id)
        if existing is None:
            raise NotFound(f"{self.record_type.capitalize()} {record_id} not found")

        current = existing.model_dump()
        merged = {c: current.get(c) for c in self.columns}
        merged.update(payload.model_dump(exclude_unset=True))
        values = self.prepare(merged)
        changed = {c: v for c, v in values.items() if v != current.get(c)}
        if not changed:
            return existing

        cols = ", ".join(f"{c} = ?" for c in changed)
        params = [_encode(v) for v in changed.values()] + [utcnow().isoformat(), record_id, baby_id]
        async with transaction(db):
            await db.execute(
                f"UPDATE {self.table} SET {cols}, updated_at = ? WHERE id = ? AND baby_id = ?",
                params,
            )
            await log_activity(
                db, baby_id, user, "updated", self.record_type, record_id,
                {c: _encode(v) for c, v in changed.items()},
            )

        record = await self._fetch(db, user, baby_id, record_id)
        self._publish("UPDATE", baby_id, new=record, old=existing)
        return record

    async def delete(
        self, db: aiosqlite.Connection, user: CurrentUser, baby_id: int, record_id: int
    ) -> None:
        """Delete a record of the baby (owner or editor)."""
        await access_control.require_editor(db, user, baby_id)
        existing = await self._fetch(db, user, baby_id, record_id)
        if existing is None:
            raise NotFound(f"{self.record_type.capitalize()} {record_id} not found")

        async with transaction(db):
            await db.execute(
                f"DELETE FROM {self.table} WHERE id = ? AND baby_id = ?", (record_id, baby_id)
            )
            await log_activity(db, baby_id, user, "deleted", self.record_type, record_id)

        self._publish("DELETE", baby_id, old=existing)

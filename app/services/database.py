"""SQLite initialization and async connection management via aiosqlite."""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import aiosqlite

from app.errors import StoreError

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "data/babycare.db")

__all__ = [
    "DATABASE_URL", "SCHEMA", "apply_schema", "create_tables", "from_iso",
    "get_db", "transaction", "utcnow",
]

_CREATE_BABIES = """
CREATE TABLE IF NOT EXISTS babies (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT    NOT NULL,
    birth_date  TEXT    NOT NULL,
    gender      TEXT    CHECK(gender IN ('male', 'female')),
    photo       TEXT,
    created_by  TEXT    NOT NULL,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
)
"""

_CREATE_COLLABORATORS = """
CREATE TABLE IF NOT EXISTS baby_collaborators (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    baby_id      INTEGER NOT NULL REFERENCES babies(id) ON DELETE CASCADE,
    user_id      TEXT    NOT NULL,
    user_email   TEXT,
    role         TEXT    NOT NULL CHECK(role IN ('owner', 'editor', 'viewer')),
    status       TEXT    NOT NULL DEFAULT 'pending'
                         CHECK(status IN ('pending', 'accepted', 'declined')),
    invited_by   TEXT,
    invited_at   TEXT,
    accepted_at  TEXT,
    created_at   TEXT    NOT NULL,
    UNIQUE (baby_id, user_id)
)
"""

_CREATE_INVITATIONS = """
CREATE TABLE IF NOT EXISTS invitations (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    baby_id      INTEGER NOT NULL REFERENCES babies(id) ON DELETE CASCADE,
    email        TEXT    NOT NULL,
    role         TEXT    NOT NULL CHECK(role IN ('editor', 'viewer')),
    token        TEXT    NOT NULL UNIQUE,
    invited_by   TEXT    NOT NULL,
    status       TEXT    NOT NULL DEFAULT 'pending'
                         CHECK(status IN ('pending', 'accepted', 'cancelled')),
    created_at   TEXT    NOT NULL,
    expires_at   TEXT    NOT NULL,
    accepted_at  TEXT
)
"""

_CREATE_FEEDINGS = """
CREATE TABLE IF NOT EXISTS feeding_records (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    baby_id     INTEGER NOT NULL REFERENCES babies(id) ON DELETE CASCADE,
    user_id     TEXT    NOT NULL,
    timestamp   TEXT    NOT NULL,
    type        TEXT    NOT NULL CHECK(type IN
                    ('breast-left', 'breast-right', 'breast-both', 'formula', 'mixed')),
    amount      REAL    CHECK(amount IS NULL OR amount > 0),
    unit        TEXT    NOT NULL DEFAULT 'ml' CHECK(unit IN ('ml', 'oz')),
    duration    INTEGER,
    notes       TEXT,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
)
"""

_CREATE_SLEEPS = """
CREATE TABLE IF NOT EXISTS sleep_records (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    baby_id     INTEGER NOT NULL REFERENCES babies(id) ON DELETE CASCADE,
    user_id     TEXT    NOT NULL,
    start_time  TEXT    NOT NULL,
    end_time    TEXT,
    duration    INTEGER,
    type        TEXT    NOT NULL CHECK(type IN ('night', 'nap')),
    quality     TEXT    CHECK(quality IN ('deep', 'light', 'restless')),
    notes       TEXT,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
)
"""

_CREATE_DIAPERS = """
CREATE TABLE IF NOT EXISTS diaper_records (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    baby_id      INTEGER NOT NULL REFERENCES babies(id) ON DELETE CASCADE,
    user_id      TEXT    NOT NULL,
    timestamp    TEXT    NOT NULL,
    type         TEXT    NOT NULL CHECK(type IN ('wet', 'poop', 'mixed')),
    poop_color   TEXT,
    consistency  TEXT,
    notes        TEXT,
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL
)
"""

_CREATE_HEALTH = """
CREATE TABLE IF NOT EXISTS health_records (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    baby_id     INTEGER NOT NULL REFERENCES babies(id) ON DELETE CASCADE,
    user_id     TEXT    NOT NULL,
    timestamp   TEXT    NOT NULL,
    type        TEXT    NOT NULL CHECK(type IN ('temperature', 'weight', 'height', 'head')),
    value       REAL    NOT NULL,
    unit        TEXT    NOT NULL,
    location    TEXT,
    notes       TEXT,
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL
)
"""

_CREATE_ACTIVITY = """
CREATE TABLE IF NOT EXISTS activity_logs (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    baby_id      INTEGER NOT NULL REFERENCES babies(id) ON DELETE CASCADE,
    user_id      TEXT,
    user_email   TEXT,
    action       TEXT    NOT NULL CHECK(action IN ('created', 'updated', 'deleted')),
    record_type  TEXT    NOT NULL CHECK(record_type IN
                     ('feeding', 'sleep', 'diaper', 'health', 'baby', 'collaborator')),
    record_id    INTEGER,
    changes      TEXT,
    created_at   TEXT    NOT NULL
)
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS ix_collaborators_user ON baby_collaborators(user_id, status)",
    "CREATE INDEX IF NOT EXISTS ix_invitations_baby ON invitations(baby_id, status)",
    "CREATE INDEX IF NOT EXISTS ix_feeding_baby ON feeding_records(baby_id, timestamp)",
    "CREATE INDEX IF NOT EXISTS ix_sleep_baby ON sleep_records(baby_id, start_time)",
    "CREATE INDEX IF NOT EXISTS ix_diaper_baby ON diaper_records(baby_id, timestamp)",
    "CREATE INDEX IF NOT EXISTS ix_health_baby ON health_records(baby_id, timestamp)",
    "CREATE INDEX IF NOT EXISTS ix_activity_baby ON activity_logs(baby_id, created_at)",
]

SCHEMA = [
    _CREATE_BABIES,
    _CREATE_COLLABORATORS,
    _CREATE_INVITATIONS,
    _CREATE_FEEDINGS,
    _CREATE_SLEEPS,
    _CREATE_DIAPERS,
    _CREATE_HEALTH,
    _CREATE_ACTIVITY,
    *_INDEXES,
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def from_iso(value: str | None) -> datetime | None:
    """Parse a stored ISO timestamp; stored values always carry an offset."""
    return datetime.fromisoformat(value) if value else None


async def apply_schema(db: aiosqlite.Connection) -> None:
    """Create every table and index on an open connection."""
    for statement in SCHEMA:
        await db.execute(statement)
    await db.commit()


async def create_tables(db_url: str = DATABASE_URL) -> None:
    """Create all application tables if they don't exist."""
    if db_url != ":memory:":
        os.makedirs(os.path.dirname(db_url) if os.path.dirname(db_url) else ".", exist_ok=True)
    async with aiosqlite.connect(db_url) as db:
        await db.execute("PRAGMA foreign_keys = ON")
        await apply_schema(db)


@asynccontextmanager
async def get_db(db_url: str = DATABASE_URL) -> AsyncGenerator[aiosqlite.Connection, None]:
    """Context manager that provides a SQLite connection with foreign keys enabled.

    Driver errors escaping the block are re-raised as StoreError.
    """
    try:
        async with aiosqlite.connect(db_url) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON")
            yield db
    except aiosqlite.Error as exc:
        logger.exception("Record store failure")
        raise StoreError() from exc


@asynccontextmanager
async def transaction(db: aiosqlite.Connection) -> AsyncGenerator[aiosqlite.Connection, None]:
    """Commit every write issued in the block together, or none of them."""
    try:
        yield db
    except BaseException:
        await db.rollback()
        raise
    else:
        await db.commit()

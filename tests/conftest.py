"""Shared fixtures across tests: in-memory SQLite via aiosqlite."""

from datetime import date

import aiosqlite
import pytest
import pytest_asyncio

from app.models.baby import BabyCreate
from app.models.collaboration import CurrentUser
from app.realtime import hub
from app.services.baby_service import create_baby
from app.services.database import apply_schema, transaction, utcnow


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with the full schema, one per test."""
    async with aiosqlite.connect(":memory:") as conn:
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA foreign_keys = ON")
        await apply_schema(conn)
        yield conn


@pytest.fixture(autouse=True)
def reset_hub():
    """No realtime subscription leaks from one test into the next."""
    yield
    hub.close_all()


@pytest.fixture
def owner() -> CurrentUser:
    return CurrentUser(id="user-owner", email="parent@example.com")


@pytest.fixture
def editor() -> CurrentUser:
    return CurrentUser(id="user-editor", email="grandma@example.com")


@pytest.fixture
def viewer() -> CurrentUser:
    return CurrentUser(id="user-viewer", email="nanny@example.com")


@pytest.fixture
def stranger() -> CurrentUser:
    return CurrentUser(id="user-stranger", email="stranger@example.com")


async def _grant(db, baby_id: int, user: CurrentUser, role: str, status: str = "accepted") -> None:
    now = utcnow().isoformat()
    async with transaction(db):
        await db.execute(
            """INSERT INTO baby_collaborators
                   (baby_id, user_id, user_email, role, status, invited_by, invited_at, accepted_at, created_at)
               VALUES (?, ?, ?, ?, ?, 'user-owner', ?, ?, ?)""",
            (baby_id, user.id, user.email, role, status, now, now if status == "accepted" else None, now),
        )


@pytest.fixture
def grant(db):
    """Insert a collaborator row directly, bypassing the invitation flow."""

    async def _insert(baby_id: int, user: CurrentUser, role: str, status: str = "accepted") -> None:
        await _grant(db, baby_id, user, role, status)

    return _insert


@pytest_asyncio.fixture
async def baby(db, owner, editor, viewer):
    """A baby owned by ``owner``, shared with ``editor`` and ``viewer``."""
    created = await create_baby(db, owner, BabyCreate(name="Léa", birth_date=date(2024, 1, 15)))
    await _grant(db, created.id, editor, "editor")
    await _grant(db, created.id, viewer, "viewer")
    return created

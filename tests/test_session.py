"""Client-side collaboration session: baby selection and role flags."""

import asyncio
from datetime import date, datetime, timezone

import pytest

from app.errors import ValidationError
from app.models.baby import BabyCreate
from app.models.collaboration import Role
from app.models.feeding import FeedingCreate
from app.realtime import ChangeHub, hub as default_hub
from app.services import access_control
from app.services.baby_service import create_baby
from app.services.feeding_service import add_feeding, get_feedings_by_baby
from app.session import (
    CollaborationSession,
    JsonFilePreferenceStore,
    MemoryPreferenceStore,
)

pytestmark = pytest.mark.asyncio


async def _settle(condition, attempts: int = 20) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0.01)


async def test_initialize_picks_newest_baby(db, owner):
    await create_baby(db, owner, BabyCreate(name="Léa", birth_date=date(2024, 1, 15)))
    newest = await create_baby(db, owner, BabyCreate(name="Tom", birth_date=date(2024, 6, 1)))
    session = CollaborationSession(db, owner, hub=ChangeHub())

    assert await session.initialize() == newest.id
    assert session.role == Role.OWNER
    assert session.can_edit and session.is_owner
    session.close()


async def test_initialize_without_babies(db, stranger):
    session = CollaborationSession(db, stranger, hub=ChangeHub())
    assert await session.initialize() is None
    assert session.role is None
    assert not session.can_edit


async def test_selection_survives_restart(db, owner, tmp_path):
    first = await create_baby(db, owner, BabyCreate(name="Léa", birth_date=date(2024, 1, 15)))
    await create_baby(db, owner, BabyCreate(name="Tom", birth_date=date(2024, 6, 1)))
    preferences = JsonFilePreferenceStore(tmp_path / "prefs.json")

    session = CollaborationSession(db, owner, preferences=preferences, hub=ChangeHub())
    await session.initialize()
    await session.select_baby(first.id)
    session.close()

    restarted = CollaborationSession(db, owner, preferences=preferences, hub=ChangeHub())
    assert await restarted.initialize() == first.id
    restarted.close()


async def test_saved_baby_no_longer_accessible(db, baby, owner, viewer):
    preferences = MemoryPreferenceStore({f"{viewer.id}:selectedBabyId": "999"})
    session = CollaborationSession(db, viewer, preferences=preferences, hub=ChangeHub())
    assert await session.initialize() == baby.id
    assert session.role == Role.VIEWER
    assert not session.can_edit
    session.close()


async def test_role_refreshes_on_collaborator_change(db, baby, owner, editor):
    changes = ChangeHub()
    session = CollaborationSession(db, editor, hub=changes)
    await session.select_baby(baby.id)
    assert session.can_edit

    # Service writes publish on the module-level hub
    bridge = default_hub.listen(baby.id, "baby_collaborators", changes.publish)
    await access_control.update_collaborator_role(db, owner, baby.id, editor.id, Role.VIEWER)
    await _settle(lambda: session.role == Role.VIEWER)

    assert session.role == Role.VIEWER
    assert not session.can_edit
    bridge.close()
    session.close()


async def test_switching_baby_releases_channels(db, owner):
    changes = ChangeHub()
    first = await create_baby(db, owner, BabyCreate(name="Léa", birth_date=date(2024, 1, 15)))
    second = await create_baby(db, owner, BabyCreate(name="Tom", birth_date=date(2024, 6, 1)))
    session = CollaborationSession(db, owner, hub=changes)

    await session.select_baby(first.id)
    session.watch("feeding_records", lambda: asyncio.sleep(0), lambda _: None)
    assert changes.subscriber_count("feeding_records", first.id) == 1

    await session.select_baby(second.id)
    assert changes.subscriber_count("feeding_records", first.id) == 0
    assert changes.subscriber_count("baby_collaborators", first.id) == 0
    session.close()
    assert changes.channel_count() == 0


async def test_late_result_for_previous_baby_is_discarded(db, owner):
    first = await create_baby(db, owner, BabyCreate(name="Léa", birth_date=date(2024, 1, 15)))
    second = await create_baby(db, owner, BabyCreate(name="Tom", birth_date=date(2024, 6, 1)))
    session = CollaborationSession(db, owner, hub=ChangeHub())
    await session.select_baby(first.id)

    applied: list[list] = []
    gate = asyncio.Event()

    async def slow_fetch():
        await gate.wait()
        return ["stale"]

    pending = asyncio.create_task(session.guarded(slow_fetch(), applied.append))
    await asyncio.sleep(0)
    await session.select_baby(second.id)
    gate.set()

    assert await pending is False
    assert applied == []
    session.close()


async def test_late_result_after_close_is_discarded(db, owner):
    baby = await create_baby(db, owner, BabyCreate(name="Léa", birth_date=date(2024, 1, 15)))
    session = CollaborationSession(db, owner, hub=ChangeHub())
    await session.select_baby(baby.id)

    applied: list[list] = []
    gate = asyncio.Event()

    async def slow_fetch():
        await gate.wait()
        return ["stale"]

    pending = asyncio.create_task(session.guarded(slow_fetch(), applied.append))
    await asyncio.sleep(0)
    session.close()
    gate.set()

    assert await pending is False
    assert applied == []


async def test_watch_refetches_full_list(db, baby, owner):
    session = CollaborationSession(db, owner, hub=default_hub)
    await session.select_baby(baby.id)
    visible: list = []
    session.watch(
        "feeding_records",
        lambda: get_feedings_by_baby(db, owner, baby.id),
        lambda records: visible.__setitem__(slice(None), records),
    )

    feeding = await add_feeding(
        db, owner, baby.id,
        FeedingCreate(timestamp=datetime(2024, 2, 1, 8, tzinfo=timezone.utc), type="formula", amount=90),
    )
    await _settle(lambda: len(visible) == 1)
    assert [f.id for f in visible] == [feeding.id]
    session.close()


async def test_watch_requires_selection(db, owner):
    session = CollaborationSession(db, owner, hub=ChangeHub())
    with pytest.raises(ValidationError):
        session.watch("feeding_records", lambda: asyncio.sleep(0), lambda _: None)

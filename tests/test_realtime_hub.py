"""In-process change hub."""

import asyncio
from datetime import datetime, timezone

import pytest

from app.models.change import ChangeEvent
from app.models.feeding import FeedingCreate
from app.realtime import ChangeHub, hub
from app.services.feeding_service import add_feeding

pytestmark = pytest.mark.asyncio


def _event(baby_id: int = 1, table: str = "feeding_records", event_type: str = "INSERT") -> ChangeEvent:
    return ChangeEvent(
        event_type=event_type,
        table=table,
        baby_id=baby_id,
        new={"id": 1},
        commit_timestamp=datetime.now(timezone.utc),
    )


async def test_events_are_filtered_by_baby_and_table():
    changes = ChangeHub()
    subscription = changes.subscribe(1, "feeding_records")
    assert changes.publish(_event(baby_id=2)) == 0
    assert changes.publish(_event(table="sleep_records")) == 0
    assert changes.publish(_event()) == 1

    event = await asyncio.wait_for(subscription.__anext__(), timeout=1)
    assert event.baby_id == 1
    assert event.table == "feeding_records"


async def test_close_ends_iteration_and_releases_channel():
    changes = ChangeHub()
    subscription = changes.subscribe(1, "feeding_records")
    changes.publish(_event())
    subscription.close()

    assert changes.subscriber_count("feeding_records", 1) == 0
    assert changes.channel_count() == 0
    assert [e async for e in subscription] == []


async def test_reopen_resumes_delivery():
    changes = ChangeHub()
    subscription = changes.subscribe(1, "feeding_records")
    subscription.close()
    assert changes.publish(_event()) == 0

    subscription.reopen()
    assert changes.publish(_event(event_type="UPDATE")) == 1
    event = await asyncio.wait_for(subscription.__anext__(), timeout=1)
    assert event.event_type == "UPDATE"


async def test_lagging_subscriber_is_dropped():
    changes = ChangeHub(queue_size=2)
    slow = changes.subscribe(1, "feeding_records")
    for _ in range(3):
        changes.publish(_event())
    assert slow.closed
    assert changes.subscriber_count("feeding_records", 1) == 0


async def test_listen_invokes_callback_and_survives_errors():
    changes = ChangeHub()
    seen: list[str] = []

    def on_change(event: ChangeEvent) -> None:
        seen.append(event.event_type)
        if event.event_type == "INSERT":
            raise RuntimeError("boom")

    subscription = changes.listen(1, "feeding_records", on_change)
    changes.publish(_event(event_type="INSERT"))
    changes.publish(_event(event_type="DELETE"))
    for _ in range(10):
        if len(seen) == 2:
            break
        await asyncio.sleep(0.01)
    subscription.close()
    assert seen == ["INSERT", "DELETE"]


async def test_reopen_restarts_callback_consumer():
    changes = ChangeHub()
    seen: list[str] = []
    subscription = changes.listen(1, "feeding_records", lambda event: seen.append(event.event_type))

    changes.publish(_event(event_type="INSERT"))
    await asyncio.sleep(0.01)
    subscription.close()
    await asyncio.sleep(0.01)

    subscription.reopen()
    changes.publish(_event(event_type="UPDATE"))
    for _ in range(10):
        if len(seen) == 2:
            break
        await asyncio.sleep(0.01)
    subscription.close()
    assert seen == ["INSERT", "UPDATE"]


async def test_reopen_right_after_close_delivers_once():
    changes = ChangeHub()
    seen: list[str] = []
    subscription = changes.listen(1, "feeding_records", lambda event: seen.append(event.event_type))
    await asyncio.sleep(0)

    subscription.close()
    subscription.reopen()
    changes.publish(_event(event_type="DELETE"))
    await asyncio.sleep(0.05)
    subscription.close()
    assert seen == ["DELETE"]


async def test_service_writes_publish_changes(db, baby, owner):
    async with hub.subscribe(baby.id, "feeding_records") as subscription:
        feeding = await add_feeding(
            db, owner, baby.id,
            FeedingCreate(timestamp=datetime(2024, 2, 1, 8, tzinfo=timezone.utc), type="formula", amount=90),
        )
        event = await asyncio.wait_for(subscription.__anext__(), timeout=1)
    assert event.event_type == "INSERT"
    assert event.new["id"] == feeding.id
    assert event.channel == f"feeding_records:{baby.id}"

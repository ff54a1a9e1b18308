"""In-process fan-out of store change notifications, one channel per (table, baby).

Delivery is best effort: a subscriber that falls behind is dropped and its
iteration simply ends. Consumers are expected to reconcile by refetching the
full record set, never by applying the event payload as a diff.
"""

import asyncio
import inspect
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Optional, Union

from app.models.change import ChangeEvent

logger = logging.getLogger(__name__)

REALTIME_QUEUE_SIZE = int(os.getenv("REALTIME_QUEUE_SIZE", "100"))

ChangeCallback = Callable[[ChangeEvent], Union[Awaitable[None], None]]


def channel_name(table: str, baby_id: int) -> str:
    return f"{table}:{baby_id}"


class Subscription:
    """A standing subscription to one channel, consumed with ``async for``."""

    def __init__(self, hub: "ChangeHub", table: str, baby_id: int, maxsize: int) -> None:
        self.hub = hub
        self.table = table
        self.baby_id = baby_id
        self._maxsize = maxsize
        self._queue: asyncio.Queue[Optional[ChangeEvent]] = asyncio.Queue(maxsize=maxsize + 1)
        self._closed = False
        self._task: Optional[asyncio.Task] = None
        self._on_change: Optional[ChangeCallback] = None

    @property
    def channel(self) -> str:
        return channel_name(self.table, self.baby_id)

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: ChangeEvent) -> bool:
        if self._closed:
            return False
        if self._queue.qsize() >= self._maxsize:
            return False
        self._queue.put_nowait(event)
        return True

    def close(self) -> None:
        """Unsubscribe. Pending events are discarded and iteration ends."""
        if self._closed:
            return
        self._closed = True
        self.hub._detach(self)
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    def reopen(self) -> "Subscription":
        """Re-attach after a close or a drop; events published meanwhile are lost.

        A callback subscription from ``ChangeHub.listen`` gets a fresh consumer.
        """
        if self._closed:
            self._queue = asyncio.Queue(maxsize=self._maxsize + 1)
            self._closed = False
            self.hub._attach(self)
            if self._on_change is not None:
                self._start_pump()
        return self

    def _start_pump(self) -> None:
        # The previous consumer may still be blocked on the discarded queue
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = asyncio.create_task(self.hub._pump(self, self._on_change))

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> ChangeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Subscription {self.channel} {state}>"


class ChangeHub:
    """Registry of open subscriptions keyed by channel name."""

    def __init__(self, queue_size: int = REALTIME_QUEUE_SIZE) -> None:
        self.queue_size = queue_size
        self._channels: dict[str, set[Subscription]] = {}

    def subscribe(self, baby_id: int, table: str) -> Subscription:
        """Open a subscription to changes of ``table`` rows where baby_id matches."""
        subscription = Subscription(self, table, baby_id, self.queue_size)
        self._attach(subscription)
        return subscription

    def listen(self, baby_id: int, table: str, on_change: ChangeCallback) -> Subscription:
        """Callback flavour of ``subscribe``: ``on_change`` runs once per event.

        Close the returned subscription to stop the background consumer.
        """
        subscription = self.subscribe(baby_id, table)
        subscription._on_change = on_change
        subscription._start_pump()
        return subscription

    async def _pump(self, subscription: Subscription, on_change: ChangeCallback) -> None:
        async for event in subscription:
            try:
                result = on_change(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Change handler failed on %s", subscription.channel)

    def publish(self, event: ChangeEvent) -> int:
        """Fan an event out to its channel. Returns the number of deliveries."""
        delivered = 0
        for subscription in list(self._channels.get(event.channel, ())):
            if subscription._deliver(event):
                delivered += 1
            else:
                logger.warning("Dropping lagging subscriber on %s", event.channel)
                subscription.close()
        return delivered

    def channel_count(self) -> int:
        return len(self._channels)

    def subscriber_count(self, table: str, baby_id: int) -> int:
        return len(self._channels.get(channel_name(table, baby_id), ()))

    def close_all(self) -> None:
        for subscriptions in list(self._channels.values()):
            for subscription in list(subscriptions):
                subscription.close()

    def _attach(self, subscription: Subscription) -> None:
        self._channels.setdefault(subscription.channel, set()).add(subscription)
        logger.debug("Subscribed to %s", subscription.channel)

    def _detach(self, subscription: Subscription) -> None:
        subscriptions = self._channels.get(subscription.channel)
        if subscriptions is None:
            return
        subscriptions.discard(subscription)
        # Clean up empty channels
        if not subscriptions:
            del self._channels[subscription.channel]
        logger.debug("Unsubscribed from %s", subscription.channel)


hub = ChangeHub()

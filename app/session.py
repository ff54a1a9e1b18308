"""Per-client collaboration state: which baby is selected and with which role.

The selection survives restarts through a pluggable preference store. The
role flags exposed here only drive what a client offers to do; every service
call re-checks permissions against the store.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional, Protocol, TypeVar

import aiosqlite

from app.errors import ValidationError
from app.models.change import ChangeEvent
from app.models.collaboration import CurrentUser, Role
from app.realtime import ChangeHub, Subscription, hub as default_hub
from app.services import access_control, baby_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

SELECTED_BABY_KEY = "selectedBabyId"


class PreferenceStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryPreferenceStore:
    """Preferences kept for the lifetime of the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFilePreferenceStore:
    """Preferences persisted to a small JSON file on the client machine."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable preferences file %s", self.path)
            return {}

    def _save(self, values: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(values, indent=2), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        values = self._load()
        values[key] = value
        self._save(values)

    def delete(self, key: str) -> None:
        values = self._load()
        if values.pop(key, None) is not None:
            self._save(values)


class CollaborationSession:
    def __init__(
        self,
        db: aiosqlite.Connection,
        user: CurrentUser,
        preferences: Optional[PreferenceStore] = None,
        hub: Optional[ChangeHub] = None,
    ) -> None:
        self.db = db
        self.user = user
        self.preferences = preferences or MemoryPreferenceStore()
        self.hub = hub or default_hub
        self.selected_baby_id: Optional[int] = None
        self.role: Optional[Role] = None
        # Bumped on every baby switch; late results from older selections are dropped
        self._generation = 0
        self._subscriptions: list[Subscription] = []

    @property
    def _preference_key(self) -> str:
        return f"{self.user.id}:{SELECTED_BABY_KEY}"

    @property
    def can_edit(self) -> bool:
        return access_control.can_edit(self.role)

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    async def initialize(self) -> Optional[int]:
        """Restore the saved baby if still accessible, else pick the newest one."""
        saved = self.preferences.get(self._preference_key)
        if saved is not None and saved.isdigit():
            baby_id = int(saved)
            if await access_control.resolve_role(self.db, baby_id, self.user.id) is not None:
                await self.select_baby(baby_id)
                return baby_id
            logger.info("Saved baby %s is no longer accessible to %s", baby_id, self.user.id)

        babies = await baby_service.list_babies(self.db, self.user)
        if not babies:
            self._clear_selection()
            return None
        await self.select_baby(babies[0].id)
        return babies[0].id

    async def select_baby(self, baby_id: int) -> Optional[Role]:
        """Switch to ``baby_id``, persist the choice and re-resolve the role."""
        if baby_id != self.selected_baby_id:
            self._release_subscriptions()
            self._generation += 1
            self.selected_baby_id = baby_id
            self.role = None
            self.preferences.set(self._preference_key, str(baby_id))
            self._subscriptions.append(
                self.hub.listen(baby_id, "baby_collaborators", self._on_collaborators_change)
            )
        return await self.refresh_role()

    async def refresh_role(self) -> Optional[Role]:
        if self.selected_baby_id is None:
            return None
        generation = self._generation
        role = await access_control.resolve_role(self.db, self.selected_baby_id, self.user.id)
        if generation == self._generation:
            self.role = role
        return role

    async def _on_collaborators_change(self, event: ChangeEvent) -> None:
        await self.refresh_role()

    async def guarded(
        self, operation: Awaitable[T], apply: Callable[[T], Any]
    ) -> bool:
        """Await ``operation`` and hand its result to ``apply`` only if the
        selected baby did not change and the session was not closed in the
        meantime. Returns whether it applied.
        """
        generation = self._generation
        result = await operation
        if generation != self._generation:
            logger.debug("Discarding result for a baby that is no longer selected")
            return False
        apply(result)
        return True

    def watch(
        self,
        table: str,
        refetch: Callable[[], Awaitable[T]],
        apply: Callable[[T], Any],
    ) -> Subscription:
        """Re-run ``refetch`` on every change of ``table`` for the selected baby.

        The whole result set replaces the client's copy; event payloads are
        never applied as diffs.
        """
        if self.selected_baby_id is None:
            raise ValidationError("No baby selected")

        async def on_change(event: ChangeEvent) -> None:
            await self.guarded(refetch(), apply)

        subscription = self.hub.listen(self.selected_baby_id, table, on_change)
        self._subscriptions.append(subscription)
        return subscription

    def _release_subscriptions(self) -> None:
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions.clear()

    def _clear_selection(self) -> None:
        self._release_subscriptions()
        self._generation += 1
        self.selected_baby_id = None
        self.role = None
        self.preferences.delete(self._preference_key)

    def close(self) -> None:
        """Release every realtime channel held by this session.

        Results of operations still in flight are discarded.
        """
        self._generation += 1
        self._release_subscriptions()

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Optional, Protocol

from loguru import logger

from clockbot.core.types import PendingSelection


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class PendingStore(Protocol):
    def put(self, selection: PendingSelection) -> None: ...

    def get(self, selection_id: str, now: Optional[datetime] = None) -> PendingSelection | None: ...

    def take(self, selection_id: str, now: Optional[datetime] = None) -> PendingSelection | None: ...

    def prune(self, now: Optional[datetime] = None) -> int: ...


class InMemoryPendingStore:
    """Pending selections of a single process, keyed by their opaque id."""

    def __init__(self) -> None:
        self._items: dict[str, PendingSelection] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, selection: PendingSelection) -> None:
        with self._lock:
            self._items[selection.id] = selection

    def get(self, selection_id: str, now: Optional[datetime] = None) -> PendingSelection | None:
        current = now or _now_utc()
        with self._lock:
            selection = self._items.get(selection_id)
            if selection is None:
                return None
            if selection.is_expired(current):
                del self._items[selection_id]
                return None
            return selection

    def take(self, selection_id: str, now: Optional[datetime] = None) -> PendingSelection | None:
        current = now or _now_utc()
        with self._lock:
            selection = self._items.pop(selection_id, None)
        if selection is None or selection.is_expired(current):
            return None
        return selection

    def prune(self, now: Optional[datetime] = None) -> int:
        current = now or _now_utc()
        with self._lock:
            expired = [key for key, value in self._items.items() if value.is_expired(current)]
            for key in expired:
                del self._items[key]
        if expired:
            logger.debug("pending: pruned {} expired selections", len(expired))
        return len(expired)

"""ViewStateCache (keep-alive cache for tab content)

Remembers the last rendered content and scroll offset per tab id so switching
back to a tab resumes where the user left off. The content object is opaque
and held by reference; it is never copied or serialized.

Design Goals:
 - O(1) average insert / lookup / eviction using OrderedDict.
 - Size-bound (default 10 entries). Eviction drops the least recently
   *updated* entry; reads do not refresh recency.
 - Best effort: a miss is a normal outcome and callers fall back to live
   content (see ``content_for``).
 - Closed tabs are purged whenever the tab store's live id set changes
   (``bind`` wires this up through the store's subscription).

Thread Safety: Not thread-safe; access is expected from the GUI thread.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional

from workspace_tabs.services.event_bus import Event, Subscription

if TYPE_CHECKING:  # pragma: no cover
    from workspace_tabs.services.tab_store import TabStore

__all__ = ["CachedView", "ViewStateCache"]


@dataclass
class CachedView:
    content: Any
    scroll_offset: int
    timestamp: float


class ViewStateCache:
    """A size-bound cache of ``CachedView`` entries keyed by tab id.

    Parameters
    ----------
    capacity : int
        Maximum number of tabs to retain. Inserting a new tab beyond this
        capacity evicts the entry that was updated longest ago.
    clock : callable
        Timestamp source, injectable for tests.
    """

    DEFAULT_CAPACITY = 10

    def __init__(
        self, capacity: int = DEFAULT_CAPACITY, *, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.capacity = max(1, capacity)
        self._clock = clock
        self._store: "OrderedDict[str, CachedView]" = OrderedDict()

    # Public API -------------------------------------------------
    def put(self, tab_id: str, content: Any, scroll_offset: int = 0) -> None:
        """Insert or overwrite the entry for ``tab_id`` with a fresh timestamp."""
        self._store[tab_id] = CachedView(
            content=content, scroll_offset=int(scroll_offset), timestamp=self._clock()
        )
        self._store.move_to_end(tab_id, last=True)
        while len(self._store) > self.capacity:
            self._store.popitem(last=False)

    def get(self, tab_id: str | None) -> Optional[CachedView]:
        """Return the cached entry or None on a miss."""
        if tab_id is None:
            return None
        return self._store.get(tab_id)

    def content_for(self, tab_id: str | None, live: Any) -> Any:
        """Cached content for ``tab_id``, falling back to ``live`` on a miss."""
        entry = self.get(tab_id)
        return entry.content if entry is not None else live

    def update_scroll(self, tab_id: str, scroll_offset: int) -> None:
        entry = self._store.get(tab_id)
        if entry is not None:
            entry.scroll_offset = int(scroll_offset)

    def purge_missing(self, live_tab_ids: Iterable[str]) -> int:
        """Drop entries whose id is not live; returns how many were removed."""
        live = set(live_tab_ids)
        stale = [k for k in self._store if k not in live]
        for k in stale:
            del self._store[k]
        return len(stale)

    def invalidate(self, tab_id: str) -> None:
        self._store.pop(tab_id, None)

    def clear(self) -> None:
        self._store.clear()

    def size(self) -> int:
        return len(self._store)

    def __len__(self) -> int:  # pragma: no cover - simple passthrough
        return len(self._store)

    def __contains__(self, tab_id: object) -> bool:
        return tab_id in self._store

    def keys(self) -> List[str]:
        """Cached ids, least recently updated first."""
        return list(self._store.keys())

    # Store wiring -------------------------------------------------
    def bind(self, store: "TabStore") -> Subscription:
        """Purge closed tabs after every store mutation."""

        def _on_change(event: Event) -> None:
            self.purge_missing(event.payload.tab_ids)

        return store.subscribe(_on_change)

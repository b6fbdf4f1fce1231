"""TabStore: single source of truth for the open workspace tabs.

Holds the ordered tab list, the active tab pointer and a bounded
most-recent-first history of closed tabs. All mutations are synchronous; after
each committed change the store

 1. writes the durable fields through its ``TabStorage`` (best effort), and
 2. publishes ``TabEvent.STATE_CHANGED`` with a ``StoreChange`` payload
    (plus ``TABS_CLOSED`` / ``ACTIVE_TAB_CHANGED`` where applicable).

Calls that change nothing (unknown ids, fixed tabs, invalid indices, empty
history) return quietly without publishing.

Ordering rules:
 - Fixed (pinned) tabs always sit left of the others; pinning moves a tab to
   the end of the fixed group, relative order inside each group is preserved.
 - Removing the active tab activates its left neighbour, else its right one.

Thread Safety: Not thread-safe; access is expected from the GUI thread.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from workspace_tabs.models import ClosedTab, StoreChange, Tab
from workspace_tabs.services.event_bus import Event, EventBus, Subscription, TabEvent
from workspace_tabs.services.tab_persistence import (
    InMemoryTabStorage,
    PersistedTab,
    PersistedTabState,
    TabStorage,
)

__all__ = ["TabStore"]

_log = logging.getLogger(__name__)


def _default_tab_id() -> str:
    return f"tab-{uuid.uuid4().hex[:12]}"


class TabStore:
    DEFAULT_HISTORY_CAPACITY = 10
    DEFAULT_MAX_TABS = 20
    UPDATABLE_FIELDS = frozenset({"title", "icon", "params", "closable"})

    def __init__(
        self,
        *,
        storage: TabStorage | None = None,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] | None = None,
        history_capacity: int = DEFAULT_HISTORY_CAPACITY,
        max_tabs: int = DEFAULT_MAX_TABS,
    ) -> None:
        self._storage: TabStorage = storage if storage is not None else InMemoryTabStorage()
        self._bus = event_bus or EventBus()
        self._clock = clock
        self._new_id = id_factory or _default_tab_id
        self.history_capacity = max(1, history_capacity)
        self.max_tabs = max(1, max_tabs)
        self._tabs: List[Tab] = []
        self._active_id: Optional[str] = None
        self._closed: List[ClosedTab] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def tabs(self) -> Tuple[Tab, ...]:
        return tuple(self._copy(t) for t in self._tabs)

    @property
    def active_tab_id(self) -> Optional[str]:
        return self._active_id

    @property
    def active_tab(self) -> Optional[Tab]:
        return self.get_tab(self._active_id) if self._active_id else None

    @property
    def recently_closed(self) -> Tuple[ClosedTab, ...]:
        return tuple(self._closed)

    def tab_ids(self) -> List[str]:
        return [t.id for t in self._tabs]

    def get_tab(self, tab_id: str) -> Optional[Tab]:
        idx = self.index_of(tab_id)
        return self._copy(self._tabs[idx]) if idx is not None else None

    def get_tab_by_path(self, path: str) -> Optional[Tab]:
        for t in self._tabs:
            if t.path == path:
                return self._copy(t)
        return None

    def index_of(self, tab_id: str | None) -> Optional[int]:
        for i, t in enumerate(self._tabs):
            if t.id == tab_id:
                return i
        return None

    def index_of_path(self, path: str) -> Optional[int]:
        for i, t in enumerate(self._tabs):
            if t.path == path:
                return i
        return None

    def __len__(self) -> int:
        return len(self._tabs)

    def subscribe(self, handler: Callable[[Event], None]) -> Subscription:
        """Register ``handler`` to run after every committed mutation."""
        return self._bus.subscribe(TabEvent.STATE_CHANGED, handler)

    def unsubscribe(self, sub: Subscription) -> None:
        self._bus.unsubscribe(sub)

    # ------------------------------------------------------------------
    # Basic operations
    # ------------------------------------------------------------------
    def add_tab(
        self,
        title: str,
        path: str,
        *,
        closable: bool = True,
        is_fixed: bool = False,
        icon: str | None = None,
        params: Dict[str, Any] | None = None,
    ) -> Optional[str]:
        """Open a tab for ``path`` (or activate the one already open).

        Returns the id of the new or existing tab, or None when the tab limit
        is reached and every open tab is fixed.
        """
        existing = self.get_tab_by_path(path)
        if existing is not None:
            self.set_active_tab(existing.id)
            return existing.id
        return self._open(
            "add_tab", title, path, closable=closable, is_fixed=is_fixed, icon=icon, params=params
        )

    def remove_tab(self, tab_id: str) -> None:
        idx = self.index_of(tab_id)
        if idx is None:
            return
        tab = self._tabs[idx]
        if tab.is_fixed:
            _log.debug("Refusing to close fixed tab %s", tab_id)
            return
        prev_active = self._active_id
        del self._tabs[idx]
        if prev_active == tab_id:
            self._active_id = self._neighbour_of(idx)
        self._push_history([tab])
        self._commit("remove_tab", prev_active, closed=[tab])

    def set_active_tab(self, tab_id: str) -> None:
        idx = self.index_of(tab_id)
        if idx is None:
            return
        self._tabs[idx].last_active_time = self._clock()
        if self._active_id == tab_id:
            return
        prev_active = self._active_id
        self._active_id = tab_id
        self._commit("set_active_tab", prev_active)

    def update_tab(self, tab_id: str, **changes: Any) -> None:
        """Shallow-merge the allowed fields (title, icon, params, closable)."""
        idx = self.index_of(tab_id)
        if idx is None:
            return
        tab = self._tabs[idx]
        changed = False
        for key, value in changes.items():
            if key not in self.UPDATABLE_FIELDS:
                _log.warning("Ignoring update of non-editable tab field %r", key)
                continue
            if key == "title":
                if not isinstance(value, str) or not value.strip():
                    continue
                value = value.strip()
            elif key == "closable":
                value = bool(value) and not tab.is_fixed
            elif key == "params":
                value = dict(value or {})
            if getattr(tab, key) != value:
                setattr(tab, key, value)
                changed = True
        if changed:
            self._commit("update_tab", self._active_id)

    def move_tab(self, from_index: int, to_index: int) -> None:
        """Reorder the live sequence; invalid or equal indices are a no-op."""
        count = len(self._tabs)
        if not (0 <= from_index < count and 0 <= to_index < count) or from_index == to_index:
            return
        before = self.tab_ids()
        tab = self._tabs.pop(from_index)
        self._tabs.insert(to_index, tab)
        self._partition_fixed()
        if self.tab_ids() == before:
            return
        self._commit("move_tab", self._active_id)

    def toggle_fix_tab(self, tab_id: str) -> None:
        idx = self.index_of(tab_id)
        if idx is None:
            return
        tab = self._tabs[idx]
        tab.is_fixed = not tab.is_fixed
        tab.closable = not tab.is_fixed
        self._partition_fixed()
        self._commit("toggle_fix_tab", self._active_id)

    def restore_closed_tab(self, index: int = 0) -> Optional[str]:
        """Reopen a history entry (the most recent one by default).

        When the entry's path is already open, that tab is activated and the
        entry is dropped instead of opening a duplicate.
        """
        if not 0 <= index < len(self._closed):
            return None
        entry = self._closed.pop(index)
        existing = self.index_of_path(entry.path)
        if existing is not None:
            prev_active = self._active_id
            tab = self._tabs[existing]
            tab.last_active_time = self._clock()
            self._active_id = tab.id
            self._commit("restore_closed_tab", prev_active)
            return tab.id
        tab_id = self._open(
            "restore_closed_tab",
            entry.title,
            entry.path,
            closable=entry.closable,
            is_fixed=entry.is_fixed,
            icon=entry.icon,
            params=entry.params,
        )
        if tab_id is None:
            # _open refuses before mutating anything, so the entry goes back in place
            self._closed.insert(index, entry)
        return tab_id

    # ------------------------------------------------------------------
    # Batch operations
    # ------------------------------------------------------------------
    def remove_other_tabs(self, tab_id: str) -> None:
        if self.index_of(tab_id) is None:
            return
        self._remove_where("remove_other_tabs", lambda i, t: t.id != tab_id, tab_id)

    def remove_tabs_to_right(self, tab_id: str) -> None:
        idx = self.index_of(tab_id)
        if idx is None:
            return
        self._remove_where("remove_tabs_to_right", lambda i, t: i > idx, tab_id)

    def remove_tabs_to_left(self, tab_id: str) -> None:
        idx = self.index_of(tab_id)
        if idx is None:
            return
        self._remove_where("remove_tabs_to_left", lambda i, t: i < idx, tab_id)

    def remove_all_tabs(self) -> None:
        self._remove_where("remove_all_tabs", lambda i, t: True, None)

    # ------------------------------------------------------------------
    # Per-tab view state
    # ------------------------------------------------------------------
    def save_scroll_position(self, tab_id: str, offset: int) -> None:
        self._set_transient(tab_id, "scroll_position", int(offset), "save_scroll_position")

    def save_tab_state(self, tab_id: str, state: Any) -> None:
        self._set_transient(tab_id, "state", state, "save_tab_state")

    def save_form_data(self, tab_id: str, form_data: Any) -> None:
        self._set_transient(tab_id, "form_data", form_data, "save_form_data")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def to_persisted(self) -> PersistedTabState:
        active = self.get_tab(self._active_id) if self._active_id else None
        return PersistedTabState(
            tabs=[
                PersistedTab(title=t.title, path=t.path, closable=t.closable, is_fixed=t.is_fixed)
                for t in self._tabs
            ],
            active_path=active.path if active else None,
        )

    def hydrate(self) -> bool:
        """Replace the live tabs with the persisted snapshot.

        Returns True when a snapshot was applied. Absent or unreadable
        snapshots leave the store empty.
        """
        try:
            state = self._storage.load()
        except Exception:  # noqa: BLE001
            _log.warning("Tab storage failed to load; starting empty", exc_info=True)
            state = None
        if state is None:
            return False
        prev_active = self._active_id
        self._tabs = []
        self._closed = []
        seen: set[str] = set()
        now = self._clock()
        for entry in state.tabs:
            if entry.path in seen:
                continue
            seen.add(entry.path)
            self._tabs.append(
                Tab(
                    id=self._new_id(),
                    title=entry.title,
                    path=entry.path,
                    closable=entry.closable and not entry.is_fixed,
                    is_fixed=entry.is_fixed,
                    last_active_time=now,
                )
            )
        self._partition_fixed()
        active_idx = self.index_of_path(state.active_path) if state.active_path else None
        if active_idx is None and self._tabs:
            active_idx = 0
        self._active_id = self._tabs[active_idx].id if active_idx is not None else None
        _log.info("Restored %d persisted tabs", len(self._tabs))
        self._commit("hydrate", prev_active, persist=False)
        return True

    def clear(self) -> None:
        prev_active = self._active_id
        self._tabs = []
        self._closed = []
        self._active_id = None
        self._commit("clear", prev_active)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _open(
        self,
        action: str,
        title: str,
        path: str,
        *,
        closable: bool,
        is_fixed: bool,
        icon: str | None,
        params: Dict[str, Any] | None,
    ) -> Optional[str]:
        prev_active = self._active_id
        evicted: List[Tab] = []
        if len(self._tabs) >= self.max_tabs:
            candidates = [t for t in self._tabs if not t.is_fixed]
            if not candidates:
                _log.warning("Maximum of %d tabs reached and all tabs are fixed", self.max_tabs)
                return None
            lru = min(candidates, key=lambda t: t.last_active_time)
            self._tabs = [t for t in self._tabs if t.id != lru.id]
            self._push_history([lru])
            evicted.append(lru)
        tab = Tab(
            id=self._new_id(),
            title=title,
            path=path,
            closable=bool(closable) and not is_fixed,
            is_fixed=bool(is_fixed),
            icon=icon,
            params=dict(params or {}),
            last_active_time=self._clock(),
        )
        self._tabs.append(tab)
        self._partition_fixed()
        self._active_id = tab.id
        self._commit(action, prev_active, closed=evicted)
        return tab.id

    def _remove_where(
        self,
        action: str,
        predicate: Callable[[int, Tab], bool],
        fallback_id: Optional[str],
    ) -> None:
        removed = [t for i, t in enumerate(self._tabs) if predicate(i, t) and not t.is_fixed]
        if not removed:
            return
        prev_active = self._active_id
        gone = {t.id for t in removed}
        self._tabs = [t for t in self._tabs if t.id not in gone]
        if self._active_id in gone or self._active_id is None:
            if fallback_id is not None and self.index_of(fallback_id) is not None:
                self._active_id = fallback_id
            else:
                self._active_id = self._tabs[0].id if self._tabs else None
        self._push_history(removed)
        self._commit(action, prev_active, closed=removed)

    def _neighbour_of(self, removed_index: int) -> Optional[str]:
        if not self._tabs:
            return None
        if removed_index > 0:
            return self._tabs[removed_index - 1].id
        return self._tabs[0].id

    def _push_history(self, tabs: Iterable[Tab]) -> None:
        # Left-to-right pushes leave the last closed tab at the front.
        for tab in tabs:
            snap = tab.snapshot()
            self._closed = [c for c in self._closed if c.path != snap.path]
            self._closed.insert(0, snap)
        del self._closed[self.history_capacity :]

    @staticmethod
    def _copy(tab: Tab) -> Tab:
        return replace(tab, params=dict(tab.params))

    def _partition_fixed(self) -> None:
        fixed = [t for t in self._tabs if t.is_fixed]
        if not fixed:
            return
        self._tabs = fixed + [t for t in self._tabs if not t.is_fixed]

    def _set_transient(self, tab_id: str, attr: str, value: Any, action: str) -> None:
        idx = self.index_of(tab_id)
        if idx is None:
            return
        setattr(self._tabs[idx], attr, value)
        self._commit(action, self._active_id, persist=False)

    def _commit(
        self,
        action: str,
        prev_active: Optional[str],
        *,
        closed: Sequence[Tab] = (),
        persist: bool = True,
    ) -> None:
        if persist:
            self._persist()
        change = StoreChange(
            action=action, tab_ids=tuple(self.tab_ids()), active_tab_id=self._active_id
        )
        _log.debug("%s -> %d tabs, active=%s", action, len(self._tabs), self._active_id)
        self._bus.publish(TabEvent.STATE_CHANGED, change)
        if closed:
            self._bus.publish(TabEvent.TABS_CLOSED, tuple(t.snapshot() for t in closed))
        if prev_active != self._active_id:
            self._bus.publish(TabEvent.ACTIVE_TAB_CHANGED, self._active_id)

    def _persist(self) -> None:
        try:
            self._storage.save(self.to_persisted())
        except Exception:  # noqa: BLE001
            _log.debug("Dropping tab state persistence failure", exc_info=True)

"""Route/Tab binder.

Keeps the current navigation path and the tab store in step:

 - ``on_navigate(path)``: navigation drives the store. Excluded paths (the
   login screen) are ignored; an open tab for the path is activated; any
   other path gets a new tab titled from the navigation menu (or, failing
   that, from its last path segment).
 - ``bind()``: the store drives navigation. When the active tab changes
   through the tab strip (click, close, restore) the binder asks its
   ``navigator`` callback to show that tab's path.

A re-entrancy flag breaks the loop between the two directions: while the
binder is applying one side to the other, updates bouncing back from the
other side are dropped.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence

from workspace_tabs.navigation.menu_config import (
    MenuItem,
    find_menu_item,
    get_menu_config,
    humanize_path,
    parse_menu,
)
from workspace_tabs.services.event_bus import Event, Subscription, TabEvent
from workspace_tabs.services.tab_store import TabStore

__all__ = ["RouteTabBinder"]

_log = logging.getLogger(__name__)

Navigator = Callable[[str], None]


class RouteTabBinder:
    def __init__(
        self,
        store: TabStore,
        *,
        menu: Any = None,
        navigator: Navigator | None = None,
        home_path: str = "/dashboard",
        home_title: str = "工作台",
        excluded_paths: Iterable[str] = ("/login",),
        root_path: str = "/",
    ) -> None:
        self._store = store
        self._menu: List[MenuItem] = parse_menu(menu) if menu is not None else get_menu_config(None)
        self.navigator = navigator
        self.home_path = home_path
        self.home_title = home_title
        self.excluded_paths = frozenset(excluded_paths)
        self.root_path = root_path
        self.current_path: Optional[str] = None
        self._syncing = False
        self._subscription: Subscription | None = None

    # Menu -----------------------------------------------------------
    @property
    def menu(self) -> Sequence[MenuItem]:
        return tuple(self._menu)

    def set_menu(self, menu: Any) -> None:
        self._menu = parse_menu(menu)

    def set_user_type(self, user_type: str | None) -> None:
        self._menu = get_menu_config(user_type)

    def title_for(self, path: str) -> str:
        """Menu label for ``path``, else a humanised last path segment."""
        try:
            item = find_menu_item(path, self._menu)
        except Exception:  # noqa: BLE001 - a damaged menu must not block tab creation
            _log.warning("Menu lookup failed for %s", path, exc_info=True)
            item = None
        if item is not None and item.name:
            return item.name
        return humanize_path(path)

    def is_excluded(self, path: str) -> bool:
        return path in self.excluded_paths

    # Navigation -> store --------------------------------------------
    def initialize(self, current_path: str) -> Optional[str]:
        """First-load reconciliation.

        Synthesises the fixed home tab when the store is empty and returns the
        path the caller should redirect to (None when no redirect is needed).
        """
        if self.is_excluded(current_path):
            return None
        if len(self._store) == 0:
            with self._applying():
                self._store.add_tab(
                    self.home_title, self.home_path, closable=False, is_fixed=True
                )
        if current_path in ("", self.root_path):
            active = self._store.active_tab
            target = self.home_path if active is None else active.path
            self.on_navigate(target)
            return target
        self.on_navigate(current_path)
        return None

    def on_navigate(self, path: str) -> Optional[str]:
        """Reconcile the store with a navigation to ``path``; returns the tab id."""
        if self._syncing:
            return None
        if path in ("", self.root_path):
            path = self.home_path
        self.current_path = path
        if self.is_excluded(path):
            return None
        with self._applying():
            existing = self._store.get_tab_by_path(path)
            if existing is not None:
                self._store.set_active_tab(existing.id)
                return existing.id
            title = self.title_for(path)
            _log.debug("Opening tab %r for %s", title, path)
            return self._store.add_tab(title, path, closable=path != self.home_path)

    # Store -> navigation --------------------------------------------
    def bind(self) -> Subscription:
        """Follow active-tab changes made outside ``on_navigate``."""
        if self._subscription is None:
            self._subscription = self._store.event_bus.subscribe(
                TabEvent.ACTIVE_TAB_CHANGED, self._on_active_changed
            )
        return self._subscription

    def unbind(self) -> None:
        if self._subscription is not None:
            self._store.event_bus.unsubscribe(self._subscription)
            self._subscription = None

    def _on_active_changed(self, event: Event) -> None:
        if self._syncing:
            return
        tab = self._store.get_tab(event.payload) if event.payload else None
        if tab is None or tab.path == self.current_path:
            return
        self.current_path = tab.path
        if self.navigator is None:
            return
        with self._applying():
            self.navigator(tab.path)

    @contextmanager
    def _applying(self) -> Iterator[None]:
        previous = self._syncing
        self._syncing = True
        try:
            yield
        finally:
            self._syncing = previous

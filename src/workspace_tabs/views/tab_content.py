"""TabContentArea - keep-alive page host for the active tab.

Shows one scrollable page per tab inside a ``QStackedWidget``. Pages are
built on first activation through a ``page_factory(tab)`` callback and kept
in the ``ViewStateCache`` so switching back restores the same widget and its
scroll offset. Cache evictions and closed tabs drop their widgets from the
stack on the next store change.

Scroll offsets of the page being left are written back through
``TabStore.save_scroll_position`` (transient, not persisted).

``TabEvent.REFRESH_REQUESTED`` rebuilds the page of the given tab.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QLabel, QScrollArea, QStackedWidget, QVBoxLayout, QWidget

from workspace_tabs.components.breadcrumb import BreadcrumbBuilder
from workspace_tabs.models import Tab
from workspace_tabs.services.event_bus import Event, TabEvent
from workspace_tabs.services.tab_store import TabStore
from workspace_tabs.services.view_state_cache import ViewStateCache

__all__ = ["TabContentArea", "EMPTY_TEXT"]

EMPTY_TEXT = "暂无打开的标签页"

_log = logging.getLogger(__name__)

PageFactory = Callable[[Tab], QWidget]


def _default_page(tab: Tab) -> QWidget:  # pragma: no cover - GUI path
    label = QLabel(f"{tab.title}\n{tab.path}")
    label.setAlignment(Qt.AlignmentFlag.AlignCenter)
    return label


class TabContentArea(QWidget):  # pragma: no cover - GUI path
    def __init__(
        self,
        store: TabStore,
        cache: ViewStateCache,
        *,
        page_factory: PageFactory | None = None,
        breadcrumb: BreadcrumbBuilder | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._cache = cache
        self._factory = page_factory or _default_page
        self._breadcrumb = breadcrumb or BreadcrumbBuilder()
        self._pages: Dict[str, QScrollArea] = {}
        self._shown_id: Optional[str] = None
        self._syncing = False

        self._crumb = QLabel(self)
        self._crumb.setObjectName("breadcrumbLabel")
        self._stack = QStackedWidget(self)
        self._empty = QLabel(EMPTY_TEXT, self._stack)
        self._empty.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._stack.addWidget(self._empty)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._crumb)
        layout.addWidget(self._stack, 1)

        bus = store.event_bus
        self._subs = [
            store.subscribe(self._on_store_changed),
            bus.subscribe(TabEvent.REFRESH_REQUESTED, self._on_refresh),
        ]
        self.sync()

    def set_breadcrumb(self, breadcrumb: BreadcrumbBuilder) -> None:
        self._breadcrumb = breadcrumb
        self.sync()

    def current_page(self) -> Optional[QWidget]:
        area = self._pages.get(self._shown_id or "")
        return area.widget() if area is not None else None

    # Event handlers -----------------------------------------------------
    def _on_store_changed(self, _event: Event) -> None:
        self.sync()

    def _on_refresh(self, event: Event) -> None:
        tab_id = event.payload
        self._cache.invalidate(tab_id)
        self._drop_page(tab_id)
        if tab_id == self._shown_id:
            self._shown_id = None
        self.sync()

    # Core sync ----------------------------------------------------------
    def sync(self) -> None:
        if self._syncing:
            return
        self._syncing = True
        try:
            self._sync()
        finally:
            self._syncing = False

    def _sync(self) -> None:
        for tab_id in [k for k in self._pages if k not in self._cache]:
            if tab_id != self._shown_id:
                self._drop_page(tab_id)
        active = self._store.active_tab
        if active is None:
            self._remember_scroll()
            self._shown_id = None
            self._stack.setCurrentWidget(self._empty)
            self._crumb.setText("")
            return
        if active.id == self._shown_id:
            self._crumb.setText(self._breadcrumb.build_for_path(active.path))
            return
        self._remember_scroll()
        area = self._cache.content_for(active.id, None)
        if area is None:
            area = self._build_page(active)
            self._cache.put(active.id, area, active.scroll_position)
        entry = self._cache.get(active.id)
        self._stack.setCurrentWidget(area)
        if entry is not None:
            area.verticalScrollBar().setValue(entry.scroll_offset)
        self._shown_id = active.id
        self._crumb.setText(self._breadcrumb.build_for_path(active.path))

    def _build_page(self, tab: Tab) -> QScrollArea:
        area = QScrollArea(self._stack)
        area.setWidgetResizable(True)
        try:
            area.setWidget(self._factory(tab))
        except Exception:  # noqa: BLE001
            _log.exception("Page factory failed for %s", tab.path)
            area.setWidget(QLabel(f"页面加载失败: {tab.path}"))
        self._stack.addWidget(area)
        self._pages[tab.id] = area
        return area

    def _remember_scroll(self) -> None:
        prev = self._shown_id
        area = self._pages.get(prev or "")
        if prev is None or area is None:
            return
        offset = area.verticalScrollBar().value()
        self._cache.update_scroll(prev, offset)
        if self._store.get_tab(prev) is not None:
            self._store.save_scroll_position(prev, offset)
        if prev not in self._cache:
            self._drop_page(prev)

    def _drop_page(self, tab_id: str) -> None:
        area = self._pages.pop(tab_id, None)
        if area is not None:
            self._stack.removeWidget(area)
            area.deleteLater()

    def closeEvent(self, event):  # noqa: N802
        for sub in self._subs:
            self._store.event_bus.unsubscribe(sub)
        super().closeEvent(event)

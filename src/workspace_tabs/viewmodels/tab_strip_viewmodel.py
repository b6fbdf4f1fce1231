"""ViewModel for the tab strip.

Translates tab strip gestures (click, drag, double-click rename, close / pin
affordances, context menu, "more" menu, overflow scrolling) into calls on the
``TabStore``. The only state held here is transient UI state: the rename
buffer, the drag gesture and the overflow flags. Navigation is not triggered
from here; the route binder follows the store's active tab.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from workspace_tabs.design.tab_reorder import DragGesture, ReorderPlan, plan_key_move
from workspace_tabs.services.event_bus import TabEvent
from workspace_tabs.services.tab_store import TabStore

__all__ = ["TabItemView", "MenuAction", "OverflowState", "TabStripViewModel", "DIVIDER"]


@dataclass(frozen=True)
class TabItemView:
    id: str
    title: str
    path: str
    active: bool
    fixed: bool
    show_close: bool
    show_pin: bool
    icon: Optional[str] = None


@dataclass(frozen=True)
class MenuAction:
    key: str
    label: str
    enabled: bool = True
    children: Tuple["MenuAction", ...] = field(default_factory=tuple)

    @property
    def is_divider(self) -> bool:
        return self.key == "divider"


DIVIDER = MenuAction("divider", "", enabled=False)


@dataclass(frozen=True)
class OverflowState:
    show_buttons: bool = False
    can_scroll_left: bool = False
    can_scroll_right: bool = False


class TabStripViewModel:
    SCROLL_STEP = 200

    def __init__(
        self,
        store: TabStore,
        *,
        home_path: str = "/dashboard",
        home_title: str = "工作台",
        drag: DragGesture | None = None,
    ) -> None:
        self._store = store
        self.home_path = home_path
        self.home_title = home_title
        self.drag = drag or DragGesture()
        self.editing_id: Optional[str] = None
        self.edit_text: str = ""
        self.overflow = OverflowState()

    @property
    def store(self) -> TabStore:
        return self._store

    # Rendering ------------------------------------------------------
    def items(self) -> List[TabItemView]:
        active = self._store.active_tab_id
        return [
            TabItemView(
                id=t.id,
                title=t.title,
                path=t.path,
                active=t.id == active,
                fixed=t.is_fixed,
                show_close=t.closable and not t.is_fixed,
                show_pin=t.is_fixed or not t.closable,
                icon=t.icon,
            )
            for t in self._store.tabs
        ]

    # Activation -----------------------------------------------------
    def click(self, tab_id: str) -> None:
        self._store.set_active_tab(tab_id)

    def close_clicked(self, tab_id: str) -> bool:
        """Close affordance; returns True so the caller stops the click propagating."""
        self._store.remove_tab(tab_id)
        return True

    def pin_clicked(self, tab_id: str) -> bool:
        self._store.toggle_fix_tab(tab_id)
        return True

    def new_tab(self) -> Optional[str]:
        return self._store.add_tab(self.home_title, self.home_path, closable=True)

    # Inline rename --------------------------------------------------
    def begin_rename(self, tab_id: str) -> bool:
        tab = self._store.get_tab(tab_id)
        if tab is None or tab.is_fixed:
            return False
        self.editing_id = tab_id
        self.edit_text = tab.title
        return True

    def set_edit_text(self, text: str) -> None:
        if self.editing_id is not None:
            self.edit_text = text

    def commit_rename(self) -> bool:
        """Apply the edit buffer; returns True when the title changed."""
        tab_id, text = self.editing_id, self.edit_text.strip()
        self.editing_id, self.edit_text = None, ""
        if tab_id is None:
            return False
        tab = self._store.get_tab(tab_id)
        if tab is None or not text or text == tab.title:
            return False
        self._store.update_tab(tab_id, title=text)
        return True

    def cancel_rename(self) -> None:
        self.editing_id, self.edit_text = None, ""

    def handle_edit_key(self, key: str) -> None:
        if key == "Enter":
            self.commit_rename()
        elif key == "Escape":
            self.cancel_rename()

    # Drag & keyboard reorder ----------------------------------------
    def press(self, tab_id: str, x: float, y: float) -> None:
        self.drag.press(tab_id, x, y)

    def pointer_move(self, x: float, y: float) -> bool:
        return self.drag.move(x, y)

    def release(self, over_id: Optional[str]) -> ReorderPlan:
        """End a press; short presses activate the tab, drags reorder it."""
        pressed_id, was_drag = self.drag.tab_id, self.drag.active
        plan = self.drag.release(self._store.tab_ids(), over_id)
        if plan.changed:
            self._store.move_tab(plan.from_index, plan.to_index)
        elif not was_drag and pressed_id is not None:
            self.click(pressed_id)
        return plan

    def key_reorder(self, tab_id: str, command: str) -> ReorderPlan:
        idx = self._store.index_of(tab_id)
        plan = plan_key_move(self._store.tab_ids(), -1 if idx is None else idx, command)
        if plan.changed:
            self._store.move_tab(plan.from_index, plan.to_index)
        return plan

    # Overflow -------------------------------------------------------
    def update_overflow(self, scroll_left: int, scroll_width: int, client_width: int) -> OverflowState:
        self.overflow = OverflowState(
            show_buttons=scroll_width > client_width,
            can_scroll_left=scroll_left > 0,
            can_scroll_right=scroll_left < scroll_width - client_width - 1,
        )
        return self.overflow

    def scroll_target(self, current_left: int, direction: int, scroll_width: int, client_width: int) -> int:
        """Next scroll offset one step to the left (-1) or right (+1)."""
        limit = max(0, scroll_width - client_width)
        return max(0, min(limit, current_left + direction * self.SCROLL_STEP))

    # Menus ----------------------------------------------------------
    def context_menu(self, tab_id: str) -> List[MenuAction]:
        tabs = self._store.tabs
        idx = self._store.index_of(tab_id)
        if idx is None:
            return []
        target = tabs[idx]
        removable = [i for i, t in enumerate(tabs) if not t.is_fixed and t.id != tab_id]
        return [
            MenuAction("refresh", "刷新"),
            DIVIDER,
            MenuAction("close", "关闭", enabled=target.closable and not target.is_fixed),
            MenuAction("close-others", "关闭其他", enabled=bool(removable)),
            MenuAction("close-right", "关闭右侧", enabled=any(i > idx for i in removable)),
            MenuAction("close-left", "关闭左侧", enabled=any(i < idx for i in removable)),
            MenuAction("close-all", "关闭全部", enabled=any(not t.is_fixed for t in tabs)),
        ]

    def more_menu(self) -> List[MenuAction]:
        tabs = self._store.tabs
        closed = self._store.recently_closed
        return [
            MenuAction(
                "all-tabs",
                "所有标签",
                children=tuple(
                    MenuAction(f"jump:{t.id}", f"📌 {t.title}" if t.is_fixed else t.title)
                    for t in tabs
                ),
            ),
            DIVIDER,
            MenuAction(
                "recently-closed",
                "最近关闭",
                enabled=bool(closed),
                children=tuple(
                    MenuAction(f"restore:{i}", c.title) for i, c in enumerate(closed)
                ),
            ),
            DIVIDER,
            MenuAction("close-all-tabs", "关闭所有标签", enabled=any(not t.is_fixed for t in tabs)),
        ]

    def trigger(self, key: str, tab_id: Optional[str] = None) -> None:
        """Run a context / more menu action by key."""
        store = self._store
        bulk: dict[str, Callable[[str], None]] = {
            "close": store.remove_tab,
            "close-others": store.remove_other_tabs,
            "close-right": store.remove_tabs_to_right,
            "close-left": store.remove_tabs_to_left,
        }
        if key == "refresh":
            target = tab_id or store.active_tab_id
            if target is not None:
                store.event_bus.publish(TabEvent.REFRESH_REQUESTED, target)
        elif key in bulk:
            if tab_id is not None:
                bulk[key](tab_id)
        elif key in ("close-all", "close-all-tabs"):
            store.remove_all_tabs()
        elif key == "new-tab":
            self.new_tab()
        elif key.startswith("jump:"):
            self.click(key[len("jump:") :])
        elif key.startswith("restore:"):
            try:
                index = int(key[len("restore:") :])
            except ValueError:
                return
            store.restore_closed_tab(index)

    # Keyboard navigation --------------------------------------------
    def close_active(self) -> None:
        if self._store.active_tab_id is not None:
            self._store.remove_tab(self._store.active_tab_id)

    def restore_last(self) -> Optional[str]:
        return self._store.restore_closed_tab()

    def activate_offset(self, step: int) -> None:
        ids = self._store.tab_ids()
        if not ids:
            return
        idx = self._store.index_of(self._store.active_tab_id)
        current = (-1 if step > 0 else 0) if idx is None else idx
        self.click(ids[(current + step) % len(ids)])

    def activate_index(self, index: int) -> None:
        ids = self._store.tab_ids()
        if 0 <= index < len(ids):
            self.click(ids[index])

"""TabBarWidget - browser-like tab strip above the workspace content.

Thin PyQt6 shell around ``TabStripViewModel``:
 - Rebuilds its ``QTabBar`` from ``items()`` whenever the store publishes
   ``TabEvent.STATE_CHANGED``
 - Forwards press / move / release to the view model so the 8px drag
   threshold and reorder planning stay headless
 - Close (x) and pin buttons per tab, double-click inline rename
 - Context menu and "more" menu rendered from ``MenuAction`` lists
 - Overflow scroll buttons stepping ``SCROLL_STEP`` pixels

No tab state lives here; every interaction ends in a view model call.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from PyQt6.QtCore import QEvent, QPoint, Qt
from PyQt6.QtGui import QKeySequence, QShortcut
from PyQt6.QtWidgets import (
    QHBoxLayout,
    QLineEdit,
    QMenu,
    QScrollArea,
    QTabBar,
    QToolButton,
    QWidget,
)

from workspace_tabs.services.event_bus import Event, Subscription
from workspace_tabs.services.shortcut_registry import ShortcutRegistry
from workspace_tabs.viewmodels.tab_strip_viewmodel import MenuAction, TabStripViewModel

__all__ = ["TabBarWidget", "populate_menu"]


def populate_menu(
    menu: QMenu, actions: Sequence[MenuAction], on_trigger: Callable[[str], None]
) -> None:  # pragma: no cover - GUI path
    for action in actions:
        if action.is_divider:
            menu.addSeparator()
            continue
        if action.children:
            sub = menu.addMenu(action.label)
            sub.setEnabled(action.enabled)
            populate_menu(sub, action.children, on_trigger)
            continue
        qa = menu.addAction(action.label)
        qa.setEnabled(action.enabled)
        qa.triggered.connect(lambda _checked=False, key=action.key: on_trigger(key))


class _StripTabBar(QTabBar):  # pragma: no cover - GUI path
    def __init__(self, owner: "TabBarWidget") -> None:
        super().__init__(owner)
        self._owner = owner
        self.setExpanding(False)
        self.setUsesScrollButtons(False)
        self.setDrawBase(False)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)

    def _id_at(self, pos: QPoint) -> Optional[str]:
        idx = self.tabAt(pos)
        return self._owner.tab_id_at(idx)

    def mousePressEvent(self, event):  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            tab_id = self._id_at(event.position().toPoint())
            if tab_id is not None:
                p = event.position()
                self._owner.vm.press(tab_id, p.x(), p.y())
                event.accept()
                return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):  # noqa: N802
        p = event.position()
        self._owner.vm.pointer_move(p.x(), p.y())
        event.accept()

    def mouseReleaseEvent(self, event):  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton and self._owner.vm.drag.pressed:
            self._owner.vm.release(self._id_at(event.position().toPoint()))
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event):  # noqa: N802
        tab_id = self._id_at(event.position().toPoint())
        if tab_id is not None:
            self._owner.begin_rename(tab_id, self.tabAt(event.position().toPoint()))


class TabBarWidget(QWidget):  # pragma: no cover - GUI path
    def __init__(self, vm: TabStripViewModel, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.vm = vm
        self._ids: List[str] = []
        self._editor: QLineEdit | None = None
        self._shortcuts: List[QShortcut] = []

        self._bar = _StripTabBar(self)
        self._bar.customContextMenuRequested.connect(self._on_context_menu)
        self._scroll = QScrollArea(self)
        self._scroll.setWidget(self._bar)
        self._scroll.setWidgetResizable(False)
        self._scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self._scroll.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self._scroll.setFrameShape(QScrollArea.Shape.NoFrame)

        self._btn_left = QToolButton(self)
        self._btn_left.setArrowType(Qt.ArrowType.LeftArrow)
        self._btn_left.clicked.connect(lambda: self._scroll_by(-1))
        self._btn_right = QToolButton(self)
        self._btn_right.setArrowType(Qt.ArrowType.RightArrow)
        self._btn_right.clicked.connect(lambda: self._scroll_by(1))
        self._btn_new = QToolButton(self)
        self._btn_new.setText("+")
        self._btn_new.setToolTip("新建标签页")
        self._btn_new.clicked.connect(self.vm.new_tab)
        self._btn_more = QToolButton(self)
        self._btn_more.setText("⋯")
        self._btn_more.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        self._more_menu = QMenu(self._btn_more)
        self._more_menu.aboutToShow.connect(self._rebuild_more_menu)
        self._btn_more.setMenu(self._more_menu)
        self._scroll.horizontalScrollBar().valueChanged.connect(lambda _v: self._refresh_overflow())

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(2)
        layout.addWidget(self._btn_left)
        layout.addWidget(self._scroll, 1)
        layout.addWidget(self._btn_right)
        layout.addWidget(self._btn_new)
        layout.addWidget(self._btn_more)

        self._sub: Subscription = vm.store.subscribe(self._on_store_changed)
        self.rebuild()

    # Store sync ---------------------------------------------------------
    def _on_store_changed(self, _event: Event) -> None:
        self.rebuild()

    def tab_id_at(self, index: int) -> Optional[str]:
        return self._ids[index] if 0 <= index < len(self._ids) else None

    def rebuild(self) -> None:
        items = self.vm.items()
        bar = self._bar
        bar.blockSignals(True)
        while bar.count():
            bar.removeTab(bar.count() - 1)
        self._ids = [it.id for it in items]
        current = -1
        for i, it in enumerate(items):
            bar.addTab(f"📌 {it.title}" if it.fixed else it.title)
            bar.setTabToolTip(i, it.path)
            if it.show_close:
                btn = QToolButton(bar)
                btn.setText("×")
                btn.setAutoRaise(True)
                btn.clicked.connect(lambda _c=False, tid=it.id: self.vm.close_clicked(tid))
                bar.setTabButton(i, QTabBar.ButtonPosition.RightSide, btn)
            elif it.show_pin:
                pin = QToolButton(bar)
                pin.setText("📌")
                pin.setAutoRaise(True)
                pin.setToolTip("取消固定")
                pin.clicked.connect(lambda _c=False, tid=it.id: self.vm.pin_clicked(tid))
                bar.setTabButton(i, QTabBar.ButtonPosition.RightSide, pin)
            if it.active:
                current = i
        if current >= 0:
            bar.setCurrentIndex(current)
        bar.blockSignals(False)
        bar.adjustSize()
        if current >= 0:
            self._scroll.ensureVisible(bar.tabRect(current).center().x(), 0, 50, 0)
        self._refresh_overflow()

    # Overflow -----------------------------------------------------------
    def _refresh_overflow(self) -> None:
        sb = self._scroll.horizontalScrollBar()
        state = self.vm.update_overflow(
            sb.value(), self._bar.width(), self._scroll.viewport().width()
        )
        for btn in (self._btn_left, self._btn_right):
            btn.setVisible(state.show_buttons)
        self._btn_left.setEnabled(state.can_scroll_left)
        self._btn_right.setEnabled(state.can_scroll_right)

    def _scroll_by(self, direction: int) -> None:
        sb = self._scroll.horizontalScrollBar()
        sb.setValue(
            self.vm.scroll_target(
                sb.value(), direction, self._bar.width(), self._scroll.viewport().width()
            )
        )

    def resizeEvent(self, event):  # noqa: N802
        super().resizeEvent(event)
        self._refresh_overflow()

    # Menus --------------------------------------------------------------
    def _on_context_menu(self, pos: QPoint) -> None:
        tab_id = self.tab_id_at(self._bar.tabAt(pos))
        if tab_id is None:
            return
        menu = QMenu(self)
        populate_menu(menu, self.vm.context_menu(tab_id), lambda key: self.vm.trigger(key, tab_id))
        menu.exec(self._bar.mapToGlobal(pos))

    def _rebuild_more_menu(self) -> None:
        self._more_menu.clear()
        populate_menu(self._more_menu, self.vm.more_menu(), self.vm.trigger)

    # Inline rename ------------------------------------------------------
    def begin_rename(self, tab_id: str, index: int) -> None:
        if not self.vm.begin_rename(tab_id):
            return
        editor = QLineEdit(self.vm.edit_text, self._bar)
        editor.setGeometry(self._bar.tabRect(index))
        editor.textChanged.connect(self.vm.set_edit_text)
        editor.editingFinished.connect(self._finish_rename)
        editor.installEventFilter(self)
        editor.selectAll()
        editor.show()
        editor.setFocus()
        self._editor = editor

    def eventFilter(self, obj, event):  # noqa: N802
        if obj is self._editor and event.type() == QEvent.Type.KeyPress:
            if event.key() == Qt.Key.Key_Escape.value:
                self.vm.handle_edit_key("Escape")
                self._drop_editor()
                return True
        return super().eventFilter(obj, event)

    def _finish_rename(self) -> None:
        if self._editor is None:
            return
        self.vm.handle_edit_key("Enter")
        self._drop_editor()

    def _drop_editor(self) -> None:
        editor, self._editor = self._editor, None
        if editor is not None:
            editor.deleteLater()

    # Keyboard -----------------------------------------------------------
    def keyPressEvent(self, event):  # noqa: N802
        active = self.vm.store.active_tab_id
        wanted = Qt.KeyboardModifier.ControlModifier | Qt.KeyboardModifier.ShiftModifier
        if active is not None and (event.modifiers() & wanted) == wanted:
            names: Dict[int, str] = {
                Qt.Key.Key_Left.value: "ctrl+shift+left",
                Qt.Key.Key_Right.value: "ctrl+shift+right",
                Qt.Key.Key_Home.value: "home",
                Qt.Key.Key_End.value: "end",
            }
            command = names.get(event.key())
            if command and self.vm.key_reorder(active, command).changed:
                event.accept()
                return
        super().keyPressEvent(event)

    def install_shortcuts(self, registry: ShortcutRegistry, scope: QWidget | None = None) -> None:
        """Create window-wide ``QShortcut`` objects for each registered tab shortcut."""
        target = scope or self.window()
        for entry in registry.list():
            if entry.handler is None:
                continue
            sc = QShortcut(QKeySequence(entry.sequence), target)
            sc.setContext(Qt.ShortcutContext.WindowShortcut)
            sc.activated.connect(entry.handler)
            self._shortcuts.append(sc)

    def closeEvent(self, event):  # noqa: N802
        self.vm.store.unsubscribe(self._sub)
        super().closeEvent(event)


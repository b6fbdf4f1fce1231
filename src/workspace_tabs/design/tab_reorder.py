"""Tab reordering helpers for pointer drags and keyboard moves.

Headless logic behind the tab strip's drag & drop. Whatever recognises the
gesture (Qt mouse events, a keyboard fallback, a test) ends up with a single
``(from_index, to_index)`` pair that the strip hands to ``TabStore.move_tab``.

Design goals:
 - Pure logic (no Qt dependency) for easy unit testing.
 - Never mutates the given id sequence.
 - Result object carries the index pair, a changed flag and a short
   screen-reader friendly announcement.
 - Out-of-range or unknown ids produce an unchanged plan, never an error.

Key pieces:
 - plan_drop(ids, dragged_id, over_id): pointer drop onto another tab
 - plan_key_move(ids, index, command): keyboard fallback (left/right/first/last)
 - DragGesture: click-vs-drag disambiguation with a minimum travel distance
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

__all__ = [
    "ReorderPlan",
    "DragGesture",
    "plan_drop",
    "plan_key_move",
    "interpret_key_command",
    "DRAG_ACTIVATION_DISTANCE",
]

DRAG_ACTIVATION_DISTANCE = 8.0  # pixels


@dataclass(frozen=True)
class ReorderPlan:
    from_index: int
    to_index: int
    changed: bool
    announcement: str


def _unchanged(index: int = -1) -> ReorderPlan:
    return ReorderPlan(index, index, False, "No change")


def _plan(src: int, dest: int, verb: str) -> ReorderPlan:
    if src == dest:
        return _unchanged(src)
    return ReorderPlan(src, dest, True, f"Moved tab from {src + 1} to {dest + 1} ({verb}).")


def _index(ids: Sequence[str], tab_id: str | None) -> int:
    try:
        return list(ids).index(tab_id)  # type: ignore[arg-type]
    except ValueError:
        return -1


def plan_drop(ids: Sequence[str], dragged_id: str, over_id: str | None) -> ReorderPlan:
    """Index pair for dropping ``dragged_id`` onto the tab ``over_id``."""
    if over_id is None or dragged_id == over_id:
        return _unchanged(_index(ids, dragged_id))
    src, dest = _index(ids, dragged_id), _index(ids, over_id)
    if src < 0 or dest < 0:
        return _unchanged(src)
    return _plan(src, dest, "drag")


def interpret_key_command(command: str) -> str:
    """Map a key command to a movement verb: left, right, first, last.

    Unknown commands return an empty string.
    """
    cmd = command.lower().replace(" ", "")
    if cmd in {"left", "arrowleft", "ctrl+shift+left", "ctrl+shift+arrowleft"}:
        return "left"
    if cmd in {"right", "arrowright", "ctrl+shift+right", "ctrl+shift+arrowright"}:
        return "right"
    if cmd in {"home", "ctrl+home"}:
        return "first"
    if cmd in {"end", "ctrl+end"}:
        return "last"
    return ""


def plan_key_move(ids: Sequence[str], index: int, command: str) -> ReorderPlan:
    count = len(ids)
    if not 0 <= index < count:
        return _unchanged(index)
    verb = interpret_key_command(command)
    if verb == "left":
        return _plan(index, max(0, index - 1), "move-left")
    if verb == "right":
        return _plan(index, min(count - 1, index + 1), "move-right")
    if verb == "first":
        return _plan(index, 0, "move-first")
    if verb == "last":
        return _plan(index, count - 1, "move-last")
    return _unchanged(index)


class DragGesture:
    """Tracks one press/move/release sequence on the tab strip.

    The gesture only becomes a drag after the pointer travelled at least
    ``activation_distance`` pixels; shorter sequences are plain clicks.
    """

    def __init__(self, activation_distance: float = DRAG_ACTIVATION_DISTANCE) -> None:
        self.activation_distance = activation_distance
        self.tab_id: Optional[str] = None
        self.active = False
        self._origin: tuple[float, float] | None = None

    @property
    def pressed(self) -> bool:
        return self._origin is not None

    def press(self, tab_id: str, x: float, y: float) -> None:
        self.tab_id = tab_id
        self.active = False
        self._origin = (x, y)

    def move(self, x: float, y: float) -> bool:
        """Update pointer position; returns True once the drag is active."""
        if self._origin is None:
            return False
        if not self.active:
            ox, oy = self._origin
            self.active = math.hypot(x - ox, y - oy) >= self.activation_distance
        return self.active

    def release(self, ids: Sequence[str], over_id: str | None) -> ReorderPlan:
        """Finish the gesture; a click (inactive drag) yields an unchanged plan."""
        try:
            if not self.active or self.tab_id is None:
                return _unchanged(_index(ids, self.tab_id))
            return plan_drop(ids, self.tab_id, over_id)
        finally:
            self.cancel()

    def cancel(self) -> None:
        self.tab_id = None
        self.active = False
        self._origin = None

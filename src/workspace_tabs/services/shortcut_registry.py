"""Shortcut Registry Service

Maps logical shortcut ids to key sequences, descriptions and handlers.
Enables:
 - Listing all shortcuts for a cheat sheet
 - Detecting conflicts by checking duplicate key sequences
 - Dispatching a pressed key sequence to its handler

Design Notes:
 - Pure Python; the Qt layer forwards key presses as plain strings
   (e.g. 'Ctrl+Shift+T').
 - Sequences are compared case-insensitively; 'Meta' / 'Cmd' are folded
   into 'Ctrl' so macOS command-key presses hit the same bindings.
 - Duplicate id registration rejected; duplicate sequences allowed but
   reported by ``find_conflicts``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from workspace_tabs.viewmodels.tab_strip_viewmodel import TabStripViewModel

__all__ = ["ShortcutEntry", "ShortcutRegistry", "normalize_sequence", "register_tab_shortcuts"]


def normalize_sequence(sequence: str) -> str:
    parts = [p.strip() for p in sequence.split("+") if p.strip()]
    out = []
    for p in parts:
        upper = p.upper()
        if upper in {"META", "CMD", "COMMAND", "CONTROL"}:
            upper = "CTRL"
        out.append(upper)
    return "+".join(out)


@dataclass(frozen=True)
class ShortcutEntry:
    shortcut_id: str
    sequence: str
    description: str
    category: str = "General"
    handler: Optional[Callable[[], None]] = None


class ShortcutRegistry:
    def __init__(self) -> None:
        self._entries: Dict[str, ShortcutEntry] = {}

    def register(
        self,
        shortcut_id: str,
        sequence: str,
        description: str,
        category: str = "General",
        handler: Optional[Callable[[], None]] = None,
    ) -> bool:
        """Register a shortcut. Returns False if id already exists."""
        if shortcut_id in self._entries:
            return False
        self._entries[shortcut_id] = ShortcutEntry(
            shortcut_id, sequence, description, category, handler
        )
        return True

    def get(self, shortcut_id: str) -> Optional[ShortcutEntry]:
        return self._entries.get(shortcut_id)

    def list(self) -> List[ShortcutEntry]:
        return list(self._entries.values())

    def by_category(self) -> Dict[str, List[ShortcutEntry]]:
        buckets: Dict[str, List[ShortcutEntry]] = {}
        for e in self._entries.values():
            buckets.setdefault(e.category, []).append(e)
        for lst in buckets.values():
            lst.sort(key=lambda x: x.sequence)
        return buckets

    def find_conflicts(self) -> Dict[str, List[ShortcutEntry]]:
        """Return mapping of normalized key sequence -> entries sharing it."""
        seq_map: Dict[str, List[ShortcutEntry]] = {}
        for e in self._entries.values():
            seq_map.setdefault(normalize_sequence(e.sequence), []).append(e)
        return {k: v for k, v in seq_map.items() if len(v) > 1}

    def dispatch(self, sequence: str) -> bool:
        """Run the first handler bound to ``sequence``; True if one ran."""
        wanted = normalize_sequence(sequence)
        for e in self._entries.values():
            if e.handler is not None and normalize_sequence(e.sequence) == wanted:
                e.handler()
                return True
        return False


def register_tab_shortcuts(registry: ShortcutRegistry, strip: "TabStripViewModel") -> None:
    """Bind the browser-like tab shortcuts to the tab strip."""
    registry.register("tabs.close", "Ctrl+W", "Close current tab", "Tabs", strip.close_active)
    registry.register("tabs.new", "Ctrl+T", "Open new tab", "Tabs", strip.new_tab)
    registry.register(
        "tabs.restore", "Ctrl+Shift+T", "Reopen recently closed tab", "Tabs", strip.restore_last
    )
    registry.register(
        "tabs.next", "Ctrl+Tab", "Next tab", "Tabs", lambda: strip.activate_offset(1)
    )
    registry.register(
        "tabs.previous", "Ctrl+Shift+Tab", "Previous tab", "Tabs", lambda: strip.activate_offset(-1)
    )
    for n in range(1, 10):
        registry.register(
            f"tabs.goto.{n}",
            f"Ctrl+{n}",
            f"Switch to tab {n}",
            "Tabs",
            lambda index=n - 1: strip.activate_index(index),
        )

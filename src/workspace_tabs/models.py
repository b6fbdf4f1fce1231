"""Workspace tab models shared by the store, the cache and the views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

__all__ = ["Tab", "ClosedTab", "StoreChange"]


@dataclass
class Tab:
    """A live workspace session bound to one navigation path.

    ``icon``, ``state`` and ``form_data`` are opaque to the store and never
    persisted; ``scroll_position`` lives on the tab so that restoring a view
    only needs the tab itself.
    """

    id: str
    title: str
    path: str
    closable: bool = True
    is_fixed: bool = False
    icon: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    state: Any = None
    scroll_position: int = 0
    form_data: Any = None
    last_active_time: float = 0.0

    def snapshot(self) -> "ClosedTab":
        return ClosedTab(
            title=self.title,
            path=self.path,
            closable=self.closable,
            is_fixed=self.is_fixed,
            icon=self.icon,
            params=dict(self.params),
        )


@dataclass(frozen=True)
class ClosedTab:
    """Entry of the recently-closed history (no live view state)."""

    title: str
    path: str
    closable: bool = True
    is_fixed: bool = False
    icon: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StoreChange:
    """Payload published after every committed tab store mutation."""

    action: str
    tab_ids: Tuple[str, ...]
    active_tab_id: Optional[str]

"""Breadcrumb Component

Builds the breadcrumb trail for the active tab's path from the navigation
menu tree (group -> page). Implemented without Qt widget subclassing to keep
it testable; the content area owns a QLabel and sets its text via
``BreadcrumbBuilder.build_for_path``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from workspace_tabs.navigation.menu_config import MenuItem, humanize_path, menu_trail

__all__ = ["BreadcrumbBuilder"]


@dataclass
class BreadcrumbBuilder:
    menu: Sequence[MenuItem] = field(default_factory=tuple)
    separator: str = " / "

    def trail(self, path: Optional[str]) -> List[Tuple[str, Optional[str]]]:
        """(name, path) pairs from the menu root to ``path``; empty if unmatched."""
        if not path:
            return []
        return [(item.name, item.path) for item in menu_trail(path, self.menu)]

    def build_for_path(self, path: Optional[str]) -> str:
        if not path:
            return ""
        parts = [name for name, _ in self.trail(path)]
        if not parts:
            return humanize_path(path)
        return self.separator.join(parts)

"""Workspace configuration persistence.

Stores the knobs of the tab workspace (home tab, excluded paths, history /
cache / tab limits, which navigation menu variant to use) next to the
persisted tab state.

Design principles:
- Pure logic (no direct Qt import) so it can be unit-tested headless.
- Explicit schema with version field to enable future migrations.
- Graceful fallback: corrupt or incompatible files produce defaults instead of raising.
- Small surface: load_config / save_config plus dataclass.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

__all__ = [
    "WorkspaceConfig",
    "load_config",
    "save_config",
    "resolve_data_dir",
    "CONFIG_VERSION",
    "DATA_DIR_ENV",
]

CONFIG_VERSION = 1  # Increment when structure changes

DEFAULT_FILENAME = "workspace_config.json"
DATA_DIR_ENV = "WORKSPACE_TABS_DATA_DIR"


@dataclass(slots=True)
class WorkspaceConfig:
    """Serializable workspace configuration.

    Attributes
    ----------
    version: Schema version for migration handling.
    home_path, home_title: The fixed tab synthesised on first load.
    root_path: App root; navigating there redirects to the home path.
    excluded_paths: Paths that never get a tab (login screen).
    history_capacity: Size of the recently-closed list.
    cache_capacity: Number of tab views kept alive.
    max_tabs: Open tab limit before the least recently used tab is closed.
    user_type: Navigation menu variant (admin, source_org, disposal_org).
    """

    version: int = CONFIG_VERSION
    home_path: str = "/dashboard"
    home_title: str = "工作台"
    root_path: str = "/"
    excluded_paths: List[str] = field(default_factory=lambda: ["/login"])
    history_capacity: int = 10
    cache_capacity: int = 10
    max_tabs: int = 20
    user_type: str = "admin"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkspaceConfig":
        defaults = cls()
        excluded = data.get("excluded_paths", defaults.excluded_paths)
        return cls(
            version=int(data.get("version", CONFIG_VERSION)),
            home_path=str(data.get("home_path", defaults.home_path)),
            home_title=str(data.get("home_title", defaults.home_title)),
            root_path=str(data.get("root_path", defaults.root_path)),
            excluded_paths=(
                [str(p) for p in excluded]
                if isinstance(excluded, list)
                else list(defaults.excluded_paths)
            ),
            history_capacity=max(1, int(data.get("history_capacity", defaults.history_capacity))),
            cache_capacity=max(1, int(data.get("cache_capacity", defaults.cache_capacity))),
            max_tabs=max(1, int(data.get("max_tabs", defaults.max_tabs))),
            user_type=str(data.get("user_type", defaults.user_type)),
        )


def resolve_data_dir(base_dir: str | Path | None = None) -> Path:
    """Explicit directory, else ``$WORKSPACE_TABS_DATA_DIR``, else ``./data``."""
    if base_dir:
        return Path(base_dir)
    return Path(os.environ.get(DATA_DIR_ENV, "data"))


def _resolve_path(base_dir: str | Path | None) -> Path:
    return resolve_data_dir(base_dir) / DEFAULT_FILENAME


def load_config(base_dir: str | Path | None = None) -> WorkspaceConfig:
    """Load workspace config from directory (defaults when absent or unreadable)."""
    path = _resolve_path(base_dir)
    if not path.exists():
        return WorkspaceConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        cfg = WorkspaceConfig.from_dict(data)
        if cfg.version != CONFIG_VERSION:
            return WorkspaceConfig()
        return cfg
    except Exception:  # noqa: BLE001
        return WorkspaceConfig()


def save_config(cfg: WorkspaceConfig, base_dir: str | Path | None = None) -> Path:
    """Persist workspace config to directory.

    Returns the path written for convenience.
    """
    path = _resolve_path(base_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(cfg.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return path

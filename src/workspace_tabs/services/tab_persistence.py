"""Tab State Persistence

Persists the open tab list so the workspace survives a restart.

Design:
 - JSON file: tabs_state.json at data dir root
 - Structure:
   {
     "version": 1,
     "tabs": [
        {"title": "工作台", "path": "/dashboard", "closable": false, "is_fixed": true}
     ],
     "active_path": "/dashboard" | null
   }
 - Only the durable fields are stored. Scroll offsets, component state, form
   data, icons and cached content are transient and never written.
 - Loading never raises: a missing file yields None, a corrupt or
   incompatible file is moved aside and also yields None.
 - ``InMemoryTabStorage`` offers the same contract without touching disk and
   is the default for a freshly constructed store.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

__all__ = [
    "TAB_STATE_VERSION",
    "PersistedTab",
    "PersistedTabState",
    "TabStorage",
    "InMemoryTabStorage",
    "JsonFileTabStorage",
]

TAB_STATE_VERSION = 1

_log = logging.getLogger(__name__)


@dataclass
class PersistedTab:
    title: str
    path: str
    closable: bool = True
    is_fixed: bool = False

    @classmethod
    def from_json(cls, obj: Any) -> "PersistedTab":
        if not isinstance(obj, dict):
            raise ValueError("tab entry must be an object")
        title = obj.get("title")
        path = obj.get("path")
        if not isinstance(title, str) or not isinstance(path, str) or not path:
            raise ValueError("tab entry requires string title and path")
        return cls(
            title=title,
            path=path,
            closable=bool(obj.get("closable", True)),
            is_fixed=bool(obj.get("is_fixed", False)),
        )


@dataclass
class PersistedTabState:
    version: int = TAB_STATE_VERSION
    tabs: List[PersistedTab] = field(default_factory=list)
    active_path: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "tabs": [asdict(t) for t in self.tabs],
            "active_path": self.active_path,
        }

    @classmethod
    def from_json(cls, obj: Any) -> "PersistedTabState":
        if not isinstance(obj, dict):
            raise ValueError("snapshot must be an object")
        if obj.get("version") != TAB_STATE_VERSION:
            raise ValueError("version mismatch")
        raw_tabs = obj.get("tabs", [])
        if not isinstance(raw_tabs, list):
            raise ValueError("tabs must be a list")
        active = obj.get("active_path")
        return cls(
            version=obj["version"],
            tabs=[PersistedTab.from_json(t) for t in raw_tabs],
            active_path=active if isinstance(active, str) else None,
        )


class TabStorage(Protocol):
    def load(self) -> Optional[PersistedTabState]: ...  # pragma: no cover - structural

    def save(self, state: PersistedTabState) -> bool: ...  # pragma: no cover - structural


class InMemoryTabStorage:
    """Process-local storage; keeps the last saved snapshot as plain JSON data."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Optional[Dict[str, Any]] = initial
        self.save_count = 0

    def load(self) -> Optional[PersistedTabState]:
        if self._data is None:
            return None
        try:
            return PersistedTabState.from_json(self._data)
        except ValueError:
            return None

    def save(self, state: PersistedTabState) -> bool:
        self._data = state.to_json()
        self.save_count += 1
        return True

    @property
    def raw(self) -> Optional[Dict[str, Any]]:
        return self._data


class JsonFileTabStorage:
    def __init__(self, base_dir: str | Path, filename: str = "tabs_state.json"):
        self.base_dir = Path(base_dir)
        self.path = self.base_dir / filename

    def load(self) -> Optional[PersistedTabState]:
        if not self.path.exists():
            return None
        try:
            obj = json.loads(self.path.read_text(encoding="utf-8"))
            return PersistedTabState.from_json(obj)
        except Exception:  # noqa: BLE001
            _log.warning("Discarding unreadable tab state at %s", self.path)
            # Backup corrupt file and start fresh
            try:
                backup = f"{self.path}.corrupt.{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}"
                os.replace(self.path, backup)
            except Exception:  # pragma: no cover
                pass
            return None

    def save(self, state: PersistedTabState) -> bool:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(
                json.dumps(state.to_json(), ensure_ascii=False, indent=2), encoding="utf-8"
            )
            tmp.replace(self.path)
            return True
        except Exception:  # noqa: BLE001
            _log.debug("Tab state not persisted to %s", self.path, exc_info=True)
            return False

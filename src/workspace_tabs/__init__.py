"""Workspace tabs public API.

Curated, intentionally small surface for callers embedding the tab workspace
(an application shell, tests) without depending on deep module paths.

Design Principles:
- Keep exports minimal & stable; prefer namespaced access for the rest.
- Avoid side-effect heavy imports (no implicit QApplication creation, views
  are imported explicitly from ``workspace_tabs.views``).
"""

from __future__ import annotations

from .models import ClosedTab, StoreChange, Tab  # noqa: F401
from .services.event_bus import Event, EventBus, TabEvent  # noqa: F401
from .services.service_locator import (  # noqa: F401
    ServiceAlreadyRegisteredError,
    ServiceLocator,
    ServiceNotFoundError,
)
from .services.tab_store import TabStore  # noqa: F401
from .services.view_state_cache import ViewStateCache  # noqa: F401
from .services.route_binder import RouteTabBinder  # noqa: F401
from .app.bootstrap import AppContext, create_app  # noqa: F401

__all__ = [
    "Tab",
    "ClosedTab",
    "StoreChange",
    "Event",
    "EventBus",
    "TabEvent",
    "ServiceLocator",
    "ServiceAlreadyRegisteredError",
    "ServiceNotFoundError",
    "TabStore",
    "ViewStateCache",
    "RouteTabBinder",
    "AppContext",
    "create_app",
]

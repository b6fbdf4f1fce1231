"""Application bootstrap for the tab workspace.

Responsibilities:
 - Optional headless bootstrap (for tests / environments without PyQt6)
 - Loading the workspace config and wiring the tab core together:
   event bus -> tab store (+ storage) -> keep-alive cache -> route binder ->
   tab strip view model -> keyboard shortcuts
 - Registering everything in a fresh ``ServiceLocator`` returned on the
   context object

The bootstrap deliberately avoids importing PyQt6 at module import time to keep
test collection fast and allow running unit tests in environments without a GUI.
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from workspace_tabs.app.config_store import WorkspaceConfig, load_config, resolve_data_dir
from workspace_tabs.services.event_bus import EventBus, TabEvent
from workspace_tabs.services.logging_service import LoggingService
from workspace_tabs.services.route_binder import RouteTabBinder
from workspace_tabs.services.service_locator import ServiceLocator
from workspace_tabs.services.shortcut_registry import ShortcutRegistry, register_tab_shortcuts
from workspace_tabs.services.tab_persistence import (
    InMemoryTabStorage,
    JsonFileTabStorage,
    TabStorage,
)
from workspace_tabs.services.tab_store import TabStore
from workspace_tabs.services.view_state_cache import ViewStateCache
from workspace_tabs.viewmodels.tab_strip_viewmodel import TabStripViewModel

try:  # Lazy / optional Qt import
    from PyQt6.QtWidgets import QApplication  # type: ignore

    _QT_AVAILABLE = True
except Exception:  # noqa: BLE001
    QApplication = None  # type: ignore
    _QT_AVAILABLE = False

__all__ = ["AppContext", "create_app"]

_log = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Container with references created during bootstrap.

    Attributes
    ----------
    qt_app: The underlying QApplication instance (None if headless or Qt missing)
    headless: Whether headless bootstrap was used
    config: Effective workspace configuration
    services: Service locator holding the wired collaborators
    duration_s: Total elapsed seconds for bootstrap
    redirect: Path the caller should navigate to after first load (or None)
    """

    qt_app: Optional[Any]
    headless: bool
    config: WorkspaceConfig
    services: ServiceLocator
    store: TabStore
    view_cache: ViewStateCache
    binder: RouteTabBinder
    strip: TabStripViewModel
    shortcuts: ShortcutRegistry
    logging_service: LoggingService
    duration_s: float
    redirect: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def close(self) -> None:
        """Detach the log capture handler and stop following the store."""
        self.binder.unbind()
        self.logging_service.detach()


def create_app(
    *,
    headless: bool | None = None,
    data_dir: str | Path | None = None,
    config: WorkspaceConfig | None = None,
    persist: bool = True,
    storage: TabStorage | None = None,
    navigator: Callable[[str], None] | None = None,
    current_path: str | None = None,
) -> AppContext:
    """Create and wire the tab workspace.

    Parameters
    ----------
    headless: Force headless (no QApplication). If None, inferred by Qt availability.
    data_dir: Directory for config and tab state (env / ``./data`` when omitted).
    persist: When False (and no ``storage`` given) tab state stays in memory.
    navigator: Called with a path when the active tab changes from the strip.
        Defaults to publishing ``TabEvent.NAVIGATE_REQUESTED``.
    current_path: Location at startup; triggers first-load reconciliation.
    """
    started = time.perf_counter()
    if headless is None:
        headless = not _QT_AVAILABLE

    qt_app = None
    if not headless and _QT_AVAILABLE:
        qt_app = QApplication.instance() or QApplication(sys.argv[:1])  # minimal argv

    base_dir = resolve_data_dir(data_dir)
    cfg = config or load_config(base_dir)
    if storage is None:
        storage = JsonFileTabStorage(base_dir) if persist else InMemoryTabStorage()

    bus = EventBus()
    logging_service = LoggingService(event_bus=bus)
    logging_service.attach()

    store = TabStore(
        storage=storage,
        event_bus=bus,
        history_capacity=cfg.history_capacity,
        max_tabs=cfg.max_tabs,
    )
    store.hydrate()

    view_cache = ViewStateCache(cfg.cache_capacity)
    view_cache.bind(store)

    binder = RouteTabBinder(
        store,
        navigator=navigator or (lambda path: bus.publish(TabEvent.NAVIGATE_REQUESTED, path)),
        home_path=cfg.home_path,
        home_title=cfg.home_title,
        excluded_paths=cfg.excluded_paths,
        root_path=cfg.root_path,
    )
    binder.set_user_type(cfg.user_type)
    binder.bind()

    strip = TabStripViewModel(store, home_path=cfg.home_path, home_title=cfg.home_title)
    shortcuts = ShortcutRegistry()
    register_tab_shortcuts(shortcuts, strip)

    redirect = binder.initialize(current_path) if current_path is not None else None

    services = ServiceLocator()
    for name, value in [
        ("config", cfg),
        ("event_bus", bus),
        ("tab_storage", storage),
        ("tab_store", store),
        ("view_cache", view_cache),
        ("route_binder", binder),
        ("tab_strip", strip),
        ("shortcuts", shortcuts),
        ("logging_service", logging_service),
    ]:
        services.register(name, value, origin=__name__)

    duration = time.perf_counter() - started
    _log.info("Workspace ready with %d tabs in %.3fs", len(store), duration)
    return AppContext(
        qt_app=qt_app,
        headless=headless,
        config=cfg,
        services=services,
        store=store,
        view_cache=view_cache,
        binder=binder,
        strip=strip,
        shortcuts=shortcuts,
        logging_service=logging_service,
        duration_s=duration,
        redirect=redirect,
        metadata={"qt_available": _QT_AVAILABLE, "data_dir": str(base_dir)},
    )

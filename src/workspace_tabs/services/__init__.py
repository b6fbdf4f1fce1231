"""Service layer exports.

Responsibilities:
 - Tab store, persistence and keep-alive cache
 - EventBus publish/subscribe core and service locator
 - Route/tab binding, shortcuts and log capture
"""

from .event_bus import EventBus, TabEvent  # noqa: F401
from .service_locator import ServiceLocator  # noqa: F401
from .tab_store import TabStore  # noqa: F401
from .view_state_cache import ViewStateCache  # noqa: F401

__all__ = [
    "EventBus",
    "TabEvent",
    "ServiceLocator",
    "TabStore",
    "ViewStateCache",
]

# Minimal conftest providing a fallback 'qtbot' fixture if pytest-qt is not installed.
# Widget tests still skip cleanly when PyQt6 itself is missing. If pytest-qt is
# installed, its fixture wins.

import contextlib
import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

try:  # If pytest-qt present, do nothing (its fixture will be used)
    import pytestqt  # type: ignore  # noqa: F401
except Exception:  # pragma: no cover
    try:
        from PyQt6.QtWidgets import QApplication
    except Exception:  # pragma: no cover
        QApplication = None  # type: ignore

    @pytest.fixture
    def qtbot():  # type: ignore
        if QApplication is None:
            pytest.skip("PyQt6 not available")
        app = QApplication.instance() or QApplication(sys.argv[:1])  # type: ignore  # noqa: F841
        widgets = []

        class Bot:
            def addWidget(self, w):  # mimic pytest-qt API subset
                widgets.append(w)

            @contextlib.contextmanager
            def waitSignal(self, *args, **kwargs):  # no-op stub
                yield

        yield Bot()
        for w in widgets:
            w.close()


from factories import make_store  # noqa: E402
from workspace_tabs.services.event_bus import EventBus, TabEvent  # noqa: E402
from workspace_tabs.services.tab_persistence import InMemoryTabStorage  # noqa: E402


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def storage():
    return InMemoryTabStorage()


@pytest.fixture
def store(bus, storage):
    return make_store(storage=storage, bus=bus)


@pytest.fixture
def recorder(bus):
    """Collects (event name, payload) for every tab event published on ``bus``."""
    seen = []
    for evt in TabEvent:
        bus.subscribe(evt, lambda e: seen.append((e.name, e.payload)))
    return seen

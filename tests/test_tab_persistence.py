import json

import pytest

from workspace_tabs.services.tab_persistence import (
    TAB_STATE_VERSION,
    JsonFileTabStorage,
    PersistedTab,
    PersistedTabState,
)
from workspace_tabs.services.tab_store import TabStore


def _state():
    return PersistedTabState(
        tabs=[
            PersistedTab("工作台", "/dashboard", closable=False, is_fixed=True),
            PersistedTab("文件审核", "/audit-center/documents"),
        ],
        active_path="/audit-center/documents",
    )


def test_save_and_load_roundtrip(tmp_path):
    storage = JsonFileTabStorage(tmp_path)
    assert storage.save(_state()) is True
    on_disk = json.loads(storage.path.read_text(encoding="utf-8"))
    assert on_disk["version"] == TAB_STATE_VERSION
    assert on_disk["tabs"][0]["title"] == "工作台"
    loaded = storage.load()
    assert loaded == _state()


def test_missing_file_loads_none(tmp_path):
    assert JsonFileTabStorage(tmp_path / "nested").load() is None


def test_corrupt_file_is_backed_up(tmp_path):
    storage = JsonFileTabStorage(tmp_path)
    storage.path.write_text("{not json", encoding="utf-8")
    assert storage.load() is None
    assert not storage.path.exists()
    backups = list(tmp_path.glob("tabs_state.json.corrupt.*"))
    assert len(backups) == 1


def test_version_mismatch_treated_as_corrupt(tmp_path):
    storage = JsonFileTabStorage(tmp_path)
    storage.path.write_text(json.dumps({"version": 0, "tabs": []}), encoding="utf-8")
    assert storage.load() is None


def test_save_failure_returns_false(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    storage = JsonFileTabStorage(blocker)  # base dir is a regular file
    assert storage.save(_state()) is False


@pytest.mark.parametrize(
    "raw",
    [
        {"title": "A"},
        {"title": 3, "path": "/a"},
        {"title": "A", "path": ""},
        "nope",
    ],
)
def test_persisted_tab_rejects_bad_entries(raw):
    with pytest.raises(ValueError):
        PersistedTab.from_json(raw)


def test_store_restores_from_file(tmp_path):
    JsonFileTabStorage(tmp_path).save(_state())
    store = TabStore(storage=JsonFileTabStorage(tmp_path))
    assert store.hydrate()
    assert [t.path for t in store.tabs] == ["/dashboard", "/audit-center/documents"]
    assert store.active_tab.title == "文件审核"
    home = store.get_tab_by_path("/dashboard")
    assert home.is_fixed and not home.closable

from workspace_tabs.services.event_bus import TabEvent
from workspace_tabs.services.tab_persistence import InMemoryTabStorage
from workspace_tabs.services.tab_store import TabStore

from factories import make_store, open_paths


def _paths(store):
    return [t.path for t in store.tabs]


def _open(store, *paths):
    return open_paths(store, paths)


def test_home_tab_on_empty_store():
    store = TabStore()
    tab_id = store.add_tab("工作台", "/dashboard", closable=False, is_fixed=True)
    assert len(store) == 1
    assert store.active_tab_id == tab_id
    tab = store.active_tab
    assert tab.closable is False and tab.is_fixed is True


def test_add_existing_path_activates_instead_of_duplicating(store):
    a = store.add_tab("A", "/a")
    store.add_tab("B", "/b")
    again = store.add_tab("A again", "/a")
    assert again == a
    assert len(store) == 2
    assert store.active_tab.path == "/a"
    assert store.get_tab(a).title == "A"  # existing tab untouched


def test_remove_active_activates_left_neighbour(store):
    a, b, _c = _open(store, "/a", "/b", "/c")
    store.set_active_tab(b)
    store.remove_tab(b)
    assert store.active_tab_id == a
    assert store.recently_closed[0].path == "/b"


def test_remove_first_active_falls_back_to_right_then_none(store):
    a, b = _open(store, "/a", "/b")
    store.set_active_tab(a)
    store.remove_tab(a)
    assert store.active_tab_id == b
    store.remove_tab(b)
    assert store.active_tab_id is None
    assert len(store) == 0


def test_remove_inactive_keeps_active(store):
    a, b, c = _open(store, "/a", "/b", "/c")
    store.remove_tab(a)
    assert store.active_tab_id == c
    assert _paths(store) == ["/b", "/c"]


def test_move_tab_reorders(store):
    _open(store, "/a", "/b", "/c")
    store.move_tab(0, 2)
    assert _paths(store) == ["/b", "/c", "/a"]


def test_move_tab_invalid_indices_are_noop(store, recorder):
    _open(store, "/a", "/b")
    recorder.clear()
    store.move_tab(0, 5)
    store.move_tab(-1, 0)
    store.move_tab(1, 1)
    assert _paths(store) == ["/a", "/b"]
    assert recorder == []


def test_fixed_tabs_stay_left_of_others(store):
    a, b, c = _open(store, "/a", "/b", "/c")
    store.toggle_fix_tab(c)
    assert _paths(store) == ["/c", "/a", "/b"]
    # dragging an unpinned tab in front of the pinned one is undone
    store.move_tab(2, 0)
    assert _paths(store)[0] == "/c"
    store.toggle_fix_tab(c)
    assert store.get_tab(c).closable is True


def test_pin_closable_exclusivity(store):
    a = store.add_tab("A", "/a")
    store.toggle_fix_tab(a)
    tab = store.get_tab(a)
    assert tab.is_fixed and not tab.closable
    store.update_tab(a, closable=True)
    assert store.get_tab(a).closable is False
    store.toggle_fix_tab(a)
    tab = store.get_tab(a)
    assert not tab.is_fixed and tab.closable


def test_fixed_tab_cannot_be_removed(store):
    a, _b = _open(store, "/a", "/b")
    store.toggle_fix_tab(a)
    store.remove_tab(a)
    assert store.get_tab(a) is not None
    assert store.recently_closed == ()


def test_remove_all_keeps_pinned(store):
    a, b, c = _open(store, "/a", "/b", "/c")
    store.toggle_fix_tab(a)
    store.remove_all_tabs()
    assert _paths(store) == ["/a"]
    assert store.active_tab_id == a


def test_bulk_closes_skip_fixed(store):
    a, b, c, d = _open(store, "/a", "/b", "/c", "/d")
    store.toggle_fix_tab(d)  # order now d, a, b, c
    store.remove_tabs_to_left(b)
    assert _paths(store) == ["/d", "/b", "/c"]
    store.remove_tabs_to_right(store.tab_ids()[0])
    assert _paths(store) == ["/d"]


def test_remove_other_tabs_activates_kept_tab(store):
    a, b, c = _open(store, "/a", "/b", "/c")
    store.remove_other_tabs(b)
    assert _paths(store) == ["/b"]
    assert store.active_tab_id == b
    # last closed is at the front of the history
    assert [c.path for c in store.recently_closed] == ["/c", "/a"]


def test_remove_tabs_to_right_keeps_active_when_still_open(store):
    a, b, c = _open(store, "/a", "/b", "/c")
    store.set_active_tab(a)
    store.remove_tabs_to_right(b)
    assert _paths(store) == ["/a", "/b"]
    assert store.active_tab_id == a


def test_history_is_bounded_and_most_recent_first(store):
    ids = _open(store, *[f"/p{i}" for i in range(11)])
    for tab_id in ids:
        store.remove_tab(tab_id)
    closed = store.recently_closed
    assert len(closed) == store.history_capacity == 10
    assert [c.path for c in closed] == [f"/p{i}" for i in range(10, 0, -1)]


def test_history_dedupes_by_path(store):
    a = store.add_tab("A", "/a")
    store.remove_tab(a)
    a2 = store.add_tab("A", "/a")
    store.remove_tab(a2)
    assert [c.path for c in store.recently_closed] == ["/a"]


def test_restore_closed_tab_reopens_most_recent(store):
    a, b = _open(store, "/a", "/b")
    store.remove_tab(b)
    restored = store.restore_closed_tab()
    assert store.get_tab(restored).path == "/b"
    assert store.active_tab_id == restored
    assert store.recently_closed == ()


def test_restore_with_path_already_open_activates_existing(store):
    a, b = _open(store, "/a", "/b")
    store.remove_tab(b)
    reopened = store.add_tab("B", "/b")
    store.set_active_tab(a)
    assert store.restore_closed_tab() == reopened
    assert store.active_tab_id == reopened
    assert len(store) == 2
    assert store.recently_closed == ()


def test_restore_with_empty_history_is_noop(store, recorder):
    assert store.restore_closed_tab() is None
    assert store.restore_closed_tab(3) is None
    assert recorder == []


def test_unknown_ids_are_ignored(store, recorder):
    store.add_tab("A", "/a")
    recorder.clear()
    store.remove_tab("nope")
    store.set_active_tab("nope")
    store.update_tab("nope", title="x")
    store.toggle_fix_tab("nope")
    store.save_scroll_position("nope", 10)
    store.remove_other_tabs("nope")
    store.remove_tabs_to_left("nope")
    store.remove_tabs_to_right("nope")
    assert recorder == []
    assert len(store) == 1


def test_update_tab_merges_allowed_fields(store):
    a = store.add_tab("A", "/a")
    store.update_tab(a, title="  Renamed ", icon="file", params={"q": 1}, path="/evil")
    tab = store.get_tab(a)
    assert tab.title == "Renamed"
    assert tab.icon == "file"
    assert tab.params == {"q": 1}
    assert tab.path == "/a"


def test_update_tab_ignores_blank_title(store, recorder):
    a = store.add_tab("A", "/a")
    recorder.clear()
    store.update_tab(a, title="   ")
    assert store.get_tab(a).title == "A"


def test_returned_tabs_do_not_share_params(store):
    a = store.add_tab("A", "/a", params={"q": "1"})
    store.get_tab(a).params["q"] = "2"
    store.tabs[0].params["extra"] = True
    store.get_tab_by_path("/a").params.clear()
    assert store.get_tab(a).params == {"q": "1"}
    assert recorder == []


def test_tabs_returns_copies(store):
    a = store.add_tab("A", "/a")
    store.tabs[0].title = "mutated"
    assert store.get_tab(a).title == "A"


def test_max_tabs_evicts_least_recently_used():
    store = make_store(max_tabs=3)
    a, b, c = _open(store, "/a", "/b", "/c")
    store.set_active_tab(a)
    store.add_tab("D", "/d")
    assert _paths(store) == ["/a", "/c", "/d"]
    assert store.recently_closed[0].path == "/b"


def test_max_tabs_with_only_fixed_tabs_refuses():
    store = TabStore(max_tabs=1)
    store.add_tab("Home", "/dashboard", closable=False, is_fixed=True)
    assert store.add_tab("B", "/b") is None
    assert len(store) == 1


def test_refused_restore_keeps_history_entry():
    store = make_store(max_tabs=2)
    a, b = _open(store, "/a", "/b")
    store.remove_tab(b)
    (c,) = _open(store, "/c")
    store.toggle_fix_tab(a)
    store.toggle_fix_tab(c)
    assert store.restore_closed_tab() is None
    assert [t.path for t in store.recently_closed] == ["/b"]
    assert _paths(store) == ["/a", "/c"]


def test_events_published_per_mutation(store, recorder):
    a = store.add_tab("A", "/a")
    names = [name for name, _ in recorder]
    assert names == [TabEvent.STATE_CHANGED.value, TabEvent.ACTIVE_TAB_CHANGED.value]
    change = recorder[0][1]
    assert change.action == "add_tab"
    assert change.tab_ids == (a,)
    assert change.active_tab_id == a

    recorder.clear()
    store.remove_tab(a)
    names = [name for name, _ in recorder]
    assert names == [
        TabEvent.STATE_CHANGED.value,
        TabEvent.TABS_CLOSED.value,
        TabEvent.ACTIVE_TAB_CHANGED.value,
    ]
    closed = recorder[1][1]
    assert [c.path for c in closed] == ["/a"]
    assert recorder[2][1] is None


def test_subscribe_and_unsubscribe(store):
    seen = []
    sub = store.subscribe(lambda e: seen.append(e.payload.action))
    store.add_tab("A", "/a")
    store.unsubscribe(sub)
    store.add_tab("B", "/b")
    assert seen == ["add_tab"]


def test_reactivating_active_tab_does_not_publish(store, recorder):
    a = store.add_tab("A", "/a")
    recorder.clear()
    store.set_active_tab(a)
    assert recorder == []


def test_view_state_updates_are_not_persisted(store, storage):
    a = store.add_tab("A", "/a")
    saves = storage.save_count
    store.save_scroll_position(a, 420)
    store.save_tab_state(a, {"page": 2})
    store.save_form_data(a, {"name": "x"})
    tab = store.get_tab(a)
    assert (tab.scroll_position, tab.state, tab.form_data) == (420, {"page": 2}, {"name": "x"})
    assert storage.save_count == saves
    assert "scroll_position" not in storage.raw["tabs"][0]


def test_persisted_snapshot_layout(store, storage):
    a, b = _open(store, "/a", "/b")
    store.toggle_fix_tab(b)
    assert storage.raw == {
        "version": 1,
        "tabs": [
            {"title": "B", "path": "/b", "closable": False, "is_fixed": True},
            {"title": "A", "path": "/a", "closable": True, "is_fixed": False},
        ],
        "active_path": "/b",
    }


def test_hydrate_round_trip(store, storage):
    _open(store, "/a", "/b", "/c")
    store.set_active_tab(store.tab_ids()[1])
    fresh = TabStore(storage=storage)
    assert fresh.hydrate() is True
    assert _paths(fresh) == ["/a", "/b", "/c"]
    assert fresh.active_tab.path == "/b"
    assert fresh.recently_closed == ()


def test_hydrate_malformed_snapshot_starts_empty():
    for raw in ({"version": 99, "tabs": []}, {"version": 1, "tabs": "x"}, ["bad"]):
        store = TabStore(storage=InMemoryTabStorage(raw))
        assert store.hydrate() is False
        assert len(store) == 0
        assert store.active_tab_id is None


def test_hydrate_normalises_snapshot():
    raw = {
        "version": 1,
        "tabs": [
            {"title": "A", "path": "/a"},
            {"title": "A dup", "path": "/a"},
            {"title": "Home", "path": "/dashboard", "closable": True, "is_fixed": True},
        ],
        "active_path": "/missing",
    }
    store = TabStore(storage=InMemoryTabStorage(raw))
    assert store.hydrate() is True
    assert _paths(store) == ["/dashboard", "/a"]
    assert store.get_tab_by_path("/dashboard").closable is False
    assert store.active_tab.path == "/dashboard"


class _BrokenStorage:
    def load(self):
        raise OSError("quota")

    def save(self, state):
        raise OSError("quota")


def test_storage_failures_are_swallowed():
    store = TabStore(storage=_BrokenStorage())
    assert store.hydrate() is False
    tab_id = store.add_tab("A", "/a")
    assert store.active_tab_id == tab_id


def test_clear_resets_everything(store):
    a, _b = _open(store, "/a", "/b")
    store.remove_tab(a)
    store.clear()
    assert len(store) == 0
    assert store.active_tab_id is None
    assert store.recently_closed == ()


def test_invariants_hold_over_mixed_operations(store):
    ids = _open(store, "/a", "/b", "/c", "/d", "/a", "/e")
    store.toggle_fix_tab(ids[2])
    store.move_tab(3, 0)
    store.remove_tab(ids[1])
    store.restore_closed_tab()
    store.remove_tabs_to_right(ids[0])
    store.add_tab("B", "/b")
    store.remove_all_tabs()
    store.restore_closed_tab(1)
    paths = _paths(store)
    assert len(paths) == len(set(paths))
    assert store.active_tab_id is None or store.get_tab(store.active_tab_id) is not None
    for tab in store.tabs:
        assert not (tab.is_fixed and tab.closable)

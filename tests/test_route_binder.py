import pytest

from workspace_tabs.services import route_binder as binder_module
from workspace_tabs.services.route_binder import RouteTabBinder
from workspace_tabs.viewmodels.tab_strip_viewmodel import TabStripViewModel

from factories import make_store


@pytest.fixture
def wired():
    store = make_store()
    calls = []
    binder = RouteTabBinder(store, navigator=calls.append)
    binder.bind()
    return store, binder, calls


def test_first_load_at_root_creates_home_and_redirects(wired):
    store, binder, calls = wired
    assert binder.initialize("/") == "/dashboard"
    assert len(store) == 1
    home = store.active_tab
    assert (home.path, home.title, home.is_fixed, home.closable) == (
        "/dashboard",
        "工作台",
        True,
        False,
    )
    assert binder.current_path == "/dashboard"
    assert calls == []


def test_first_load_on_deep_link_adds_tab_after_home(wired):
    store, binder, calls = wired
    assert binder.initialize("/audit-center/documents") is None
    assert [t.path for t in store.tabs] == ["/dashboard", "/audit-center/documents"]
    active = store.active_tab
    assert active.title == "文件审核"
    assert active.closable is True
    assert calls == []


def test_first_load_at_root_reuses_restored_active_tab(wired):
    store, binder, _ = wired
    store.add_tab("Reports", "/reports")
    assert binder.initialize("/") == "/reports"
    assert [t.path for t in store.tabs] == ["/reports"]


def test_login_path_never_gets_a_tab(wired):
    store, binder, _ = wired
    assert binder.initialize("/login") is None
    assert binder.on_navigate("/login") is None
    assert len(store) == 0


def test_navigate_to_open_path_activates_it(wired):
    store, binder, calls = wired
    binder.initialize("/")
    first = binder.on_navigate("/reports")
    binder.on_navigate("/dashboard")
    assert binder.on_navigate("/reports") == first
    assert len(store) == 2
    assert store.active_tab_id == first
    assert calls == []


def test_root_path_maps_to_home(wired):
    store, binder, _ = wired
    binder.initialize("/reports")
    binder.on_navigate("/")
    assert store.active_tab.path == "/dashboard"
    assert binder.current_path == "/dashboard"


def test_unmatched_path_gets_humanised_title(wired):
    store, binder, _ = wired
    binder.on_navigate("/foo/case-packages_v2?tab=1")
    assert store.active_tab.title == "Case Packages V2"


def test_group_path_resolves_to_group_label(wired):
    store, binder, _ = wired
    binder.on_navigate("/source-orgs")
    assert store.active_tab.title == "案源机构管理"


def test_user_type_selects_menu_variant(wired):
    store, binder, _ = wired
    binder.set_user_type("source_org")
    binder.on_navigate("/case-templates")
    assert store.active_tab.title == "发布模板"
    binder.set_user_type("disposal_org")
    assert binder.title_for("/case-market/bidding") == "竞标管理"
    binder.set_user_type("unknown")
    assert binder.title_for("/system/roles") == "角色管理"


def test_malformed_menu_falls_back_to_humanised_title():
    store = make_store()
    binder = RouteTabBinder(store, menu=[{"key": 1}, "junk", {"key": "r", "name": "R", "children": 7}])
    assert [item.key for item in binder.menu] == ["r"]
    binder.on_navigate("/system/users")
    assert store.active_tab.title == "Users"
    binder.set_menu(None)
    assert binder.menu == ()


def test_menu_lookup_failure_never_blocks_tab_creation(wired, monkeypatch):
    store, binder, _ = wired

    def boom(path, menu):
        raise RuntimeError("broken menu")

    monkeypatch.setattr(binder_module, "find_menu_item", boom)
    assert binder.on_navigate("/reports") is not None
    assert store.active_tab.title == "Reports"


def test_strip_activation_drives_navigation(wired):
    store, binder, calls = wired
    binder.initialize("/")
    reports = binder.on_navigate("/reports")
    strip = TabStripViewModel(store)
    strip.click(store.get_tab_by_path("/dashboard").id)
    assert calls == ["/dashboard"]
    strip.click(reports)
    strip.close_clicked(reports)
    assert calls == ["/dashboard", "/reports", "/dashboard"]
    assert binder.current_path == "/dashboard"


def test_navigator_feeding_back_into_binder_does_not_loop():
    store = make_store()
    binder = RouteTabBinder(store)
    calls = []

    def router(path):
        calls.append(path)
        binder.on_navigate(path)

    binder.navigator = router
    binder.bind()
    binder.initialize("/reports")
    store.set_active_tab(store.get_tab_by_path("/dashboard").id)
    assert calls == ["/dashboard"]
    assert store.active_tab.path == "/dashboard"
    assert len(store) == 2


def test_closing_last_closable_tab_navigates_to_home(wired):
    store, binder, calls = wired
    binder.initialize("/reports")
    store.remove_all_tabs()
    assert [t.path for t in store.tabs] == ["/dashboard"]
    assert calls == ["/dashboard"]


def test_unbind_stops_following_store(wired):
    store, binder, calls = wired
    binder.initialize("/reports")
    binder.unbind()
    store.set_active_tab(store.get_tab_by_path("/dashboard").id)
    assert calls == []


def test_home_tab_reopened_by_navigation_is_not_closable():
    store = make_store()
    binder = RouteTabBinder(store)
    binder.on_navigate("/dashboard")
    assert store.active_tab.closable is False

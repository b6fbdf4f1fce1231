"""Navigation menu configuration and lookup helpers.

The side menu is described as a static tree of ``{key, name, path?, icon?,
children?}`` nodes. Three variants exist, selected by the signed-in user's
type: platform administrators, case source organisations and disposal
organisations.

The tree is read-only input for the route binder (tab titles) and the
breadcrumb builder. Parsing is tolerant: nodes that are not mappings or lack
a string ``key``/``name`` are skipped rather than rejected, so a damaged
configuration only costs the affected entries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

__all__ = [
    "MenuItem",
    "USER_TYPES",
    "parse_menu",
    "get_menu_config",
    "find_menu_item",
    "menu_trail",
    "humanize_path",
]


@dataclass(frozen=True)
class MenuItem:
    key: str
    name: str
    path: Optional[str] = None
    icon: Optional[str] = None
    children: Tuple["MenuItem", ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["MenuItem"]:
        if not isinstance(raw, Mapping):
            return None
        key, name = raw.get("key"), raw.get("name")
        if not isinstance(key, str) or not isinstance(name, str):
            return None
        path = raw.get("path")
        icon = raw.get("icon")
        return cls(
            key=key,
            name=name,
            path=path if isinstance(path, str) else None,
            icon=icon if isinstance(icon, str) else None,
            children=tuple(parse_menu(raw.get("children") or ())),
        )


def parse_menu(raw: Any) -> List[MenuItem]:
    """Convert raw mappings (or ready ``MenuItem`` objects) into a menu tree."""
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        return []
    items: List[MenuItem] = []
    for node in raw:
        item = node if isinstance(node, MenuItem) else MenuItem.from_dict(node)
        if item is not None:
            items.append(item)
    return items


def _node(key: str, path: str, name: str, icon: str | None = None, children=()) -> dict:
    data: dict[str, Any] = {"key": key, "path": path, "name": name}
    if icon:
        data["icon"] = icon
    if children:
        data["children"] = list(children)
    return data


# Platform administrator menu
MAIN_MENU = [
    _node("dashboard", "/dashboard", "工作台", "dashboard"),
    _node(
        "source-orgs",
        "/source-orgs",
        "案源机构管理",
        "bank",
        [
            _node("source-orgs-list", "/source-orgs", "机构列表", "bank"),
            _node("source-orgs-map", "/source-orgs/map", "地理分布", "environment"),
            _node("source-orgs-stats", "/source-orgs/stats", "案件统计", "line-chart"),
            _node("source-orgs-cooperation", "/source-orgs/cooperation", "合作管理", "money-collect"),
            _node("source-orgs-api", "/source-orgs/api", "API管理", "api"),
            _node("source-orgs-quality", "/source-orgs/quality", "质量分析", "trophy"),
        ],
    ),
    _node(
        "disposal-orgs",
        "/disposal-orgs",
        "处置机构管理",
        "team",
        [
            _node("disposal-orgs-list", "/disposal-orgs", "机构列表", "team"),
            _node("disposal-orgs-map", "/disposal-orgs/map", "地理分布", "environment"),
            _node("disposal-orgs-performance", "/disposal-orgs/performance", "业绩统计", "bar-chart"),
            _node("disposal-orgs-capacity", "/disposal-orgs/capacity", "产能管理", "thunderbolt"),
            _node("disposal-orgs-resource", "/disposal-orgs/resource", "资源管理", "user"),
            _node("disposal-orgs-membership", "/disposal-orgs/membership", "会员管理", "safety"),
        ],
    ),
    _node(
        "audit-center",
        "/audit-center",
        "机构审核中心",
        "audit",
        [
            _node("audit-dashboard", "/audit-center/dashboard", "审核仪表板"),
            _node("audit-applications", "/audit-center", "申请审核"),
            _node("audit-documents", "/audit-center/documents", "文件审核"),
            _node("audit-risk", "/audit-center/risk", "风险评估"),
        ],
    ),
    _node(
        "case-management",
        "/cases",
        "案件管理",
        "file-text",
        [
            _node("case-packages", "/cases/packages", "案件包管理"),
            _node("case-market", "/cases/market", "案件市场"),
            _node("case-assignment", "/assignment", "智能分案"),
        ],
    ),
    _node("contract-management", "/contracts", "合同管理", "file-protect"),
    _node("reports", "/reports", "报表分析", "bar-chart"),
    _node(
        "system",
        "/system",
        "系统管理",
        "setting",
        [
            _node("system-users", "/system/users", "用户管理"),
            _node("system-roles", "/system/roles", "角色管理"),
            _node("system-settings", "/system/settings", "系统设置"),
        ],
    ),
]

# Case source organisation menu
SOURCE_ORG_MENU = [
    _node("dashboard", "/dashboard", "工作台", "dashboard"),
    _node(
        "my-org",
        "/my-org",
        "我的机构",
        "bank",
        [
            _node("my-org-profile", "/my-org/profile", "机构信息"),
            _node("my-org-api", "/my-org/api", "API配置"),
            _node("my-org-cooperation", "/my-org/cooperation", "合作状态"),
        ],
    ),
    _node(
        "case-publish",
        "/case-publish",
        "案件发布",
        "file-text",
        [
            _node("case-packages", "/case-packages", "案件包管理"),
            _node("case-templates", "/case-templates", "发布模板"),
            _node("case-quality", "/case-quality", "质量检查"),
        ],
    ),
    _node(
        "disposal-partners",
        "/disposal-partners",
        "处置伙伴",
        "team",
        [
            _node("partner-selection", "/disposal-partners/selection", "机构选择"),
            _node("partner-performance", "/disposal-partners/performance", "合作业绩"),
        ],
    ),
    _node(
        "financial",
        "/financial",
        "财务管理",
        "dollar",
        [
            _node("financial-billing", "/financial/billing", "账单管理"),
            _node("financial-reports", "/financial/reports", "财务报表"),
        ],
    ),
    _node("reports", "/reports", "数据报表", "bar-chart"),
]

# Disposal organisation menu
DISPOSAL_ORG_MENU = [
    _node("dashboard", "/dashboard", "工作台", "dashboard"),
    _node(
        "my-org",
        "/my-org",
        "我的机构",
        "team",
        [
            _node("my-org-profile", "/my-org/profile", "机构信息"),
            _node("my-org-capacity", "/my-org/capacity", "产能管理"),
            _node("my-org-team", "/my-org/team", "团队管理"),
            _node("my-org-membership", "/my-org/membership", "会员中心"),
        ],
    ),
    _node(
        "case-market",
        "/case-market",
        "案件市场",
        "search",
        [
            _node("case-browse", "/case-market/browse", "浏览案件"),
            _node("case-bidding", "/case-market/bidding", "竞标管理"),
            _node("case-received", "/case-market/received", "承接案件"),
        ],
    ),
    _node(
        "case-disposal",
        "/case-disposal",
        "案件处置",
        "experiment",
        [
            _node("case-processing", "/case-disposal/processing", "处理中案件"),
            _node("case-completed", "/case-disposal/completed", "已完成案件"),
            _node("case-timeline", "/case-disposal/timeline", "处置时间线"),
        ],
    ),
    _node(
        "source-partners",
        "/source-partners",
        "案源伙伴",
        "bank",
        [
            _node("partner-cooperation", "/source-partners/cooperation", "合作状态"),
            _node("partner-evaluation", "/source-partners/evaluation", "合作评价"),
        ],
    ),
    _node(
        "performance",
        "/performance",
        "业绩管理",
        "trophy",
        [
            _node("performance-stats", "/performance/stats", "业绩统计"),
            _node("performance-analysis", "/performance/analysis", "业绩分析"),
        ],
    ),
    _node(
        "financial",
        "/financial",
        "财务管理",
        "money-collect",
        [
            _node("financial-income", "/financial/income", "收入管理"),
            _node("financial-settlement", "/financial/settlement", "结算管理"),
            _node("financial-reports", "/financial/reports", "财务报表"),
        ],
    ),
]

_MENUS = {
    "admin": MAIN_MENU,
    "source_org": SOURCE_ORG_MENU,
    "disposal_org": DISPOSAL_ORG_MENU,
}

USER_TYPES = tuple(_MENUS)


def get_menu_config(user_type: str | None) -> List[MenuItem]:
    """Menu tree for ``user_type``; unknown types get the administrator menu."""
    return parse_menu(_MENUS.get(user_type or "admin", MAIN_MENU))


def menu_trail(path: str, menu: Sequence[MenuItem]) -> List[MenuItem]:
    """Items from the root down to the first node whose path equals ``path``.

    Depth-first, parents before children, so a group sharing its path with
    its first child resolves to the group.
    """

    def _walk(items: Sequence[MenuItem], parents: List[MenuItem]) -> Optional[List[MenuItem]]:
        for item in items:
            trail = parents + [item]
            if item.path == path:
                return trail
            found = _walk(item.children, trail)
            if found:
                return found
        return None

    return _walk(menu, []) or []


def find_menu_item(path: str, menu: Sequence[MenuItem]) -> Optional[MenuItem]:
    trail = menu_trail(path, menu)
    return trail[-1] if trail else None


_SEPARATORS = re.compile(r"[-_.\s]+")


def humanize_path(path: Any, default: str = "Home") -> str:
    """Best-effort title from the last path segment (``/case-packages`` -> ``Case Packages``)."""
    if not isinstance(path, str):
        return default
    bare = path.split("?", 1)[0].split("#", 1)[0]
    segments = [s for s in bare.split("/") if s]
    if not segments:
        return default
    words = [w for w in _SEPARATORS.split(segments[-1]) if w]
    if not words:
        return default
    return " ".join(w[:1].upper() + w[1:] for w in words)

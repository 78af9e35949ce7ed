# core/nav_registry.py
from __future__ import annotations
import importlib
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Set

from core.policy import can_view_page

# Page renderer signature: (app) -> None, where app is core.ui.AppContext.
PageFn = Callable[[object], None]

@dataclass(frozen=True)
class Route:
    key: str                  # stable id, also the url path segment
    label: str                # UI label
    icon: str                 # emoji
    policy_page_key: str      # must match a page_name in page_access_rules
    render: str               # "package.module:function", imported on first use
    path: str = ""

    @property
    def url(self) -> str:
        return self.path or f"/{self.key}"

@dataclass(frozen=True)
class NavSection:
    title: str
    routes: tuple

SECTIONS: List[NavSection] = [
    NavSection("Overview", (
        Route("dashboard",        "Dashboard",          "📊", "Dashboard",         "screens.dashboard.page:render"),
    )),
    NavSection("Academics", (
        Route("classes",          "Classes & Sections", "🏫", "Classes",           "screens.classes.main:render"),
        Route("subjects",         "Subjects",           "📘", "Subjects",          "screens.subjects.page:render"),
        Route("examinations",     "Examination Terms",  "📝", "Examinations",      "screens.examinations.page:render"),
    )),
    NavSection("Staff", (
        Route("teachers",         "Teachers",           "👩‍🏫", "Teachers",          "screens.teachers.page:render"),
    )),
    NavSection("Operations", (
        Route("transportation",   "Transport Trips",    "🚌", "Transportation",    "screens.transportation.page:render"),
        Route("finance",          "Fee Structures",     "💰", "Finance",           "screens.finance.page:render"),
    )),
    NavSection("Settings", (
        Route("approval_settings", "Approval Settings", "⚙️", "Approval Settings", "screens.approval_settings.page:render"),
    )),
]

# Index for quick lookup (used by router)
ROUTE_INDEX: Dict[str, Route] = {r.key: r for s in SECTIONS for r in s.routes}
DEFAULT_ROUTE_KEY = "dashboard"

def visible_sections(
    sections: Iterable[NavSection], roles: Iterable[str], rules: Dict[str, Set[str]]
) -> List[NavSection]:
    """Permission-filtered copy of the tree; sections left without routes are dropped."""
    roles = set(roles)
    out: List[NavSection] = []
    for section in sections:
        routes = tuple(r for r in section.routes if can_view_page(r.policy_page_key, roles, rules))
        if routes:
            out.append(NavSection(section.title, routes))
    return out

def is_active(route_path: str, current_path: str) -> bool:
    """Exact match or a child path (/classes is active on /classes/12)."""
    route_path = route_path.rstrip("/") or "/"
    current_path = current_path.rstrip("/") or "/"
    if route_path == "/":
        return current_path == "/"
    return current_path == route_path or current_path.startswith(route_path + "/")

def active_route(sections: Iterable[NavSection], current_path: str) -> Optional[tuple]:
    """(section, route) whose path matches best, longest prefix first."""
    best = None
    for section in sections:
        for route in section.routes:
            if is_active(route.url, current_path):
                if best is None or len(route.url) > len(best[1].url):
                    best = (section, route)
    return best

def resolve_render(route: Route) -> PageFn:
    module_name, _, attr = route.render.partition(":")
    module = importlib.import_module(module_name)
    return getattr(module, attr or "render")

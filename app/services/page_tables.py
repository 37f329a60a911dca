"""Static page tables used for titles, breadcrumbs and sidebar icons.

Order matters: within a table the first matching pattern wins, so specific
patterns (``/app/interviews/new``) must come before general ones
(``/app/interviews/:id``).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Breadcrumb:
    name: str
    path: str


@dataclass(frozen=True)
class RoutePattern:
    """A route template with its display title and breadcrumb trail."""

    path: str
    title: str
    breadcrumb: tuple[Breadcrumb, ...] | None = None


@dataclass(frozen=True)
class PageIcon:
    icon: str
    color: str


def _page(path: str, title: str, *crumbs: tuple[str, str]) -> RoutePattern:
    return RoutePattern(
        path=path,
        title=title,
        breadcrumb=tuple(Breadcrumb(name, href) for name, href in crumbs) or None,
    )


APP_PAGES: tuple[RoutePattern, ...] = (
    _page("/app/dashboard", "App Dashboard", ("Dashboard", "/app/dashboard")),
    _page("/app/interviews", "Interviews", ("Interviews", "/app/interviews")),
    _page("/app/results", "Results", ("Results", "/app/results")),
    _page("/app/invoices", "Invoices", ("Invoices", "/app/invoices")),
    _page(
        "/app/me/update/profile",
        "Update Profile",
        ("Update Profile", "/app/me/update/profile"),
    ),
    _page(
        "/app/me/update/password",
        "Update Password",
        ("Update Password", "/app/me/update/password"),
    ),
    _page("/app/unsubscribe", "Unsubscribe App", ("Unsubscribe", "/app/unsubscribe")),
)

NESTED_PAGES: tuple[RoutePattern, ...] = (
    _page(
        "/app/interviews/new",
        "Create New Interview",
        ("Interviews", "/app/interviews"),
        ("New", "/app/interviews/new"),
    ),
    _page(
        "/app/interviews/:id",
        "Interview Details",
        ("Interviews", "/app/interviews"),
        ("Details", "/app/interviews/:id"),
    ),
    _page(
        "/app/results/:id",
        "Result Details",
        ("Results", "/app/results"),
        ("Details", "/app/results/:id"),
    ),
)

ADMIN_PAGES: tuple[RoutePattern, ...] = (
    _page("/admin/dashboard", "Admin Dashboard", ("Admin Dashboard", "/admin/dashboard")),
    _page("/admin/interviews", "Interviews", ("Interviews", "/admin/interviews")),
    _page("/admin/users", "Users", ("Users", "/admin/users")),
)

PAGE_ICONS: Mapping[str, PageIcon] = MappingProxyType(
    {
        "/app/dashboard": PageIcon("solar:chart-square-bold-duotone", "success"),
        "/app/interviews": PageIcon("solar:user-speak-bold", "primary"),
        "/app/results": PageIcon("tabler:report-analytics", "secondary"),
        "/app/invoices": PageIcon("solar:document-text-bold-duotone", "success"),
        "/app/me/update/profile": PageIcon("solar:user-id-bold-duotone", "warning"),
        "/app/me/update/password": PageIcon(
            "solar:lock-keyhole-minimalistic-bold-duotone", "default"
        ),
        "/app/unsubscribe": PageIcon("solar:trash-bin-trash-bold-duotone", "danger"),
        "/admin/dashboard": PageIcon("solar:chart-square-bold-duotone", "success"),
        "/admin/interviews": PageIcon("solar:microphone-2-bold-duotone", "primary"),
        "/admin/users": PageIcon("solar:users-group-rounded-bold-duotone", "secondary"),
    }
)


def page_icon(pathname: str | None) -> PageIcon | None:
    """Sidebar icon for an exact top-level page path, if one is defined."""

    if not pathname:
        return None
    path = pathname.split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return PAGE_ICONS.get(path)

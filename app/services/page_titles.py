"""Page title and breadcrumb resolution.

Given a request path, find the first route pattern in the relevant table
that matches and return its title and breadcrumb trail. Paths under the
admin marker segment use the admin table; everything else uses the app
pages followed by the nested pages.

Resolution never fails: anything that does not match (including malformed
percent-escapes) resolves to ``NOT_FOUND``, a regular result that callers
render like any other page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Literal, Mapping, Sequence, overload

from app.core.errors import RouteTableAppError
from app.services.page_tables import (
    ADMIN_PAGES,
    APP_PAGES,
    NESTED_PAGES,
    Breadcrumb,
    RoutePattern,
)
from app.utils.route_patterns import (
    CompiledPattern,
    compile_template,
    expand_template,
    patterns_overlap,
    split_path,
)

logger = logging.getLogger(__name__)

AmbiguityPolicy = Literal["warn", "fail", "ignore"]


@dataclass(frozen=True)
class PageTitle:
    """Resolved title, breadcrumb trail and captured path parameters."""

    title: str
    breadcrumb: tuple[Breadcrumb, ...] | None
    params: Mapping[str, "str | list[str]"] = field(default_factory=lambda: MappingProxyType({}))

    def expanded_breadcrumb(self) -> tuple[Breadcrumb, ...] | None:
        """Breadcrumb with ``:param`` placeholders replaced by captured values."""
        if self.breadcrumb is None:
            return None
        return tuple(
            Breadcrumb(name=crumb.name, path=expand_template(crumb.path, self.params))
            if ":" in crumb.path
            else crumb
            for crumb in self.breadcrumb
        )


NOT_FOUND = PageTitle(
    title="not Found",
    breadcrumb=(Breadcrumb(name="not Found", path="/"),),
)


@dataclass(frozen=True)
class CompiledRoute:
    pattern: RoutePattern
    compiled: CompiledPattern


class RouteTable(Sequence[CompiledRoute]):
    """An ordered, immutable table of compiled route patterns."""

    def __init__(self, routes: Iterable[CompiledRoute]) -> None:
        self._routes = tuple(routes)

    @classmethod
    def from_patterns(cls, patterns: Iterable[RoutePattern]) -> "RouteTable":
        return cls(CompiledRoute(pattern=p, compiled=compile_template(p.path)) for p in patterns)

    @overload
    def __getitem__(self, index: int) -> CompiledRoute: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[CompiledRoute, ...]: ...

    def __getitem__(self, index: int | slice) -> CompiledRoute | tuple[CompiledRoute, ...]:
        return self._routes[index]

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[CompiledRoute]:
        return iter(self._routes)

    def __add__(self, other: "RouteTable") -> "RouteTable":
        return RouteTable((*self._routes, *other._routes))

    @property
    def patterns(self) -> tuple[RoutePattern, ...]:
        return tuple(route.pattern for route in self._routes)


def resolve_title(pathname: str | None, table: RouteTable) -> PageTitle:
    """Return the title/breadcrumb of the first pattern matching ``pathname``.

    Args:
        pathname: Request path, percent-encoded or not.
        table: Compiled route table, searched in order.

    Returns:
        The matching page's ``PageTitle``, or ``NOT_FOUND``.
    """

    parts = split_path(pathname)
    if parts is None:
        return NOT_FOUND

    for route in table:
        params = route.compiled.match_segments(parts)
        if params is not None:
            return PageTitle(
                title=route.pattern.title,
                breadcrumb=route.pattern.breadcrumb,
                params=MappingProxyType(params),
            )

    return NOT_FOUND


@dataclass(frozen=True)
class AmbiguousPair:
    """An earlier pattern that can shadow a later, more specific one."""

    earlier: str
    later: str


def check_table_ordering(
    table: RouteTable,
    *,
    policy: AmbiguityPolicy = "warn",
    table_name: str = "table",
) -> list[AmbiguousPair]:
    """Detect overlapping patterns listed general-before-specific.

    Two patterns overlap when some path matches both. An overlap is fine when
    the earlier pattern is the more specific one (``/app/interviews/new``
    before ``/app/interviews/:id``); otherwise the later pattern is partly or
    fully unreachable.

    Raises:
        RouteTableAppError: If ``policy`` is ``"fail"`` and an ambiguous pair exists.
    """

    if policy == "ignore":
        return []

    ambiguous: list[AmbiguousPair] = []
    routes = list(table)
    for i, earlier in enumerate(routes):
        for later in routes[i + 1:]:
            if not patterns_overlap(earlier.compiled, later.compiled):
                continue
            if earlier.compiled.specificity > later.compiled.specificity:
                logger.debug(
                    "navigation.ordered_overlap",
                    extra={
                        "table": table_name,
                        "earlier": earlier.pattern.path,
                        "later": later.pattern.path,
                    },
                )
                continue
            ambiguous.append(AmbiguousPair(earlier=earlier.pattern.path, later=later.pattern.path))

    for pair in ambiguous:
        logger.warning(
            "navigation.ambiguous_order",
            extra={"table": table_name, "earlier": pair.earlier, "later": pair.later},
        )

    if ambiguous and policy == "fail":
        first = ambiguous[0]
        raise RouteTableAppError(
            code="ambiguous_route_order",
            message=(
                f"Pattern {first.earlier!r} is listed before the more specific "
                f"{first.later!r} in the {table_name} table"
            ),
            details={
                "hint": "List specific patterns before general ones",
                "context": {
                    "table": table_name,
                    "pairs": [[p.earlier, p.later] for p in ambiguous],
                },
            },
        )

    return ambiguous


class RouteTitleResolver:
    """Resolves page titles against the admin or app+nested table.

    Tables are compiled and checked once at construction.
    """

    def __init__(
        self,
        admin_pages: Iterable[RoutePattern] = ADMIN_PAGES,
        app_pages: Iterable[RoutePattern] = APP_PAGES,
        nested_pages: Iterable[RoutePattern] = NESTED_PAGES,
        *,
        admin_marker: str = "admin",
        ambiguity_policy: AmbiguityPolicy = "warn",
    ) -> None:
        self.admin_marker = admin_marker.strip("/").casefold()
        self.admin_table = RouteTable.from_patterns(admin_pages)
        self.app_table = RouteTable.from_patterns(app_pages) + RouteTable.from_patterns(nested_pages)

        check_table_ordering(self.admin_table, policy=ambiguity_policy, table_name="admin")
        check_table_ordering(self.app_table, policy=ambiguity_policy, table_name="app")

        logger.debug(
            "navigation.tables_compiled",
            extra={"admin_routes": len(self.admin_table), "app_routes": len(self.app_table)},
        )

    def select_table(self, pathname: str | None) -> RouteTable:
        """Admin table when any segment equals the admin marker, else app+nested."""
        parts = split_path(pathname) or []
        if any(part.casefold() == self.admin_marker for part in parts):
            return self.admin_table
        return self.app_table

    def resolve(self, pathname: str | None) -> PageTitle:
        return resolve_title(pathname, self.select_table(pathname))


_default_resolver: RouteTitleResolver | None = None


def get_page_title(pathname: str | None) -> PageTitle:
    """Resolve ``pathname`` against the built-in page tables."""

    global _default_resolver
    if _default_resolver is None:
        _default_resolver = RouteTitleResolver()
    return _default_resolver.resolve(pathname)

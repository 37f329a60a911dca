from fastapi import APIRouter, Depends, Query, Request

from app.core.rate_limit import enforce_rate_limit
from app.schemas.navigation import (
    PageTitleResponse,
    RoutePatternResponse,
    RouteTablesResponse,
)
from app.services.page_tables import page_icon
from app.services.page_titles import RouteTitleResolver

router = APIRouter(tags=["Navigation"])


def get_title_resolver(request: Request) -> RouteTitleResolver:
    """Return the resolver compiled at startup, building one if absent."""
    resolver = getattr(request.app.state, "title_resolver", None)
    if resolver is None:
        resolver = RouteTitleResolver()
        request.app.state.title_resolver = resolver
    return resolver


@router.get(
    "/navigation/title",
    response_model=PageTitleResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def page_title(
    path: str = Query(..., description="Page path to resolve, e.g. /app/interviews/42"),
    resolver: RouteTitleResolver = Depends(get_title_resolver),
) -> PageTitleResponse:
    """Resolve the display title and breadcrumb trail for a page path.

    Unknown or malformed paths resolve to the "not Found" page rather than
    an error.
    """
    page = resolver.resolve(path)
    return PageTitleResponse.build(path, page, page_icon(path))


@router.get(
    "/navigation/tables",
    response_model=RouteTablesResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def route_tables(
    resolver: RouteTitleResolver = Depends(get_title_resolver),
) -> RouteTablesResponse:
    """List the page tables in the order they are searched."""
    return RouteTablesResponse(
        admin=[RoutePatternResponse.from_pattern(p) for p in resolver.admin_table.patterns],
        app=[RoutePatternResponse.from_pattern(p) for p in resolver.app_table.patterns],
    )

"""Pydantic schemas for page title and route table responses."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from app.services.page_tables import Breadcrumb, PageIcon, RoutePattern
from app.services.page_titles import PageTitle


class BreadcrumbItem(BaseModel):
    name: str = Field(..., description="Label shown in the breadcrumb trail.")
    path: str = Field(..., description="Link target; may contain ':param' placeholders.")

    @classmethod
    def from_crumb(cls, crumb: Breadcrumb) -> "BreadcrumbItem":
        return cls(name=crumb.name, path=crumb.path)


class PageIconResponse(BaseModel):
    icon: str
    color: str

    @classmethod
    def from_icon(cls, icon: PageIcon) -> "PageIconResponse":
        return cls(icon=icon.icon, color=icon.color)


class PageTitleResponse(BaseModel):
    """Resolved title and navigation trail for a path."""

    path: str = Field(..., description="The path that was resolved, as received.")
    title: str = Field(..., description="Display title ('not Found' when nothing matched).")
    breadcrumb: List[BreadcrumbItem] | None = Field(
        default=None,
        description="Breadcrumb trail with placeholders filled from the path, if the page defines one.",
    )
    params: Dict[str, str | List[str]] = Field(
        default_factory=dict,
        description="Named parameters captured from the path.",
    )
    icon: PageIconResponse | None = Field(
        default=None,
        description="Sidebar icon for top-level pages.",
    )

    @classmethod
    def build(cls, path: str, page: PageTitle, icon: PageIcon | None) -> "PageTitleResponse":
        crumbs = page.expanded_breadcrumb()
        return cls(
            path=path,
            title=page.title,
            breadcrumb=[BreadcrumbItem.from_crumb(c) for c in crumbs] if crumbs is not None else None,
            params=dict(page.params),
            icon=PageIconResponse.from_icon(icon) if icon else None,
        )


class RoutePatternResponse(BaseModel):
    path: str
    title: str
    breadcrumb: List[BreadcrumbItem] | None = None

    @classmethod
    def from_pattern(cls, pattern: RoutePattern) -> "RoutePatternResponse":
        return cls(
            path=pattern.path,
            title=pattern.title,
            breadcrumb=(
                [BreadcrumbItem.from_crumb(c) for c in pattern.breadcrumb]
                if pattern.breadcrumb is not None
                else None
            ),
        )


class RouteTablesResponse(BaseModel):
    """Configured page tables in match order."""

    admin: List[RoutePatternResponse] = Field(default_factory=list)
    app: List[RoutePatternResponse] = Field(
        default_factory=list,
        description="App pages followed by nested pages, as searched.",
    )

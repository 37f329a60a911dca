"""OpenAPI customization utilities.

Enriches the generated schema with tag descriptions and documents the 429
response (and its headers) on every rate-limited operation, which FastAPI
cannot infer from a dependency.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {
        "name": "Navigation",
        "description": "Page titles, breadcrumb trails and route tables.",
    },
    {
        "name": "Operations",
        "description": "Attempt budgets for login, registration and password flows.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

_RATE_LIMIT_HEADERS = {
    "Retry-After": "Seconds until the client may retry.",
    "X-RateLimit-Limit": "Requests allowed per window.",
    "X-RateLimit-Remaining": "Requests left in the current window.",
    "X-RateLimit-Reset": "UNIX time at which the window resets.",
}


def _too_many_requests_response() -> Dict[str, Any]:
    return {
        "description": "Rate limit exceeded.",
        "headers": {
            name: {"description": desc, "schema": {"type": "string"}}
            for name, desc in _RATE_LIMIT_HEADERS.items()
        },
    }


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with tags and 429 documentation.

    Health endpoints are not rate limited and are left untouched.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if path.endswith("/health"):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    responses = method_obj.setdefault("responses", {})
                    responses.setdefault("429", _too_many_requests_response())

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]

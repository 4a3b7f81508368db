"""Runtime helpers for the CMS settings."""

from __future__ import annotations

from enum import Enum

from django.conf import settings

# Route name of the catch-all view rendering pure CMS pages by slug.
PAGE_SLUG_ROUTE = "page_slug"

CONTAINER_TYPE = "core.container"

ERROR_ROUTE_PREFIX = "_page_internal_error_"


class ErrorPolicy(str, Enum):
    """How block-level failures surface to the caller."""

    STRICT = "strict"
    DEGRADE = "degrade"


def error_policy() -> ErrorPolicy:
    raw = getattr(settings, "CMS_ERROR_POLICY", None)
    if raw:
        value = str(raw).strip().lower()
        if value in {p.value for p in ErrorPolicy}:
            return ErrorPolicy(value)
    return ErrorPolicy.STRICT if settings.DEBUG else ErrorPolicy.DEGRADE


def default_cache_ttl() -> int:
    try:
        return max(1, int(getattr(settings, "CMS_CACHE_DEFAULT_TTL", 600)))
    except (TypeError, ValueError):
        return 600


def cache_alias() -> str:
    return getattr(settings, "CMS_CACHE_ALIAS", "default") or "default"


def error_route_name(status_code: int) -> str:
    return f"{ERROR_ROUTE_PREFIX}{int(status_code)}"

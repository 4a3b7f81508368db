# apps/cms/blocks/base.py
from __future__ import annotations
from typing import Any, Dict, Optional

from django.http import HttpResponse

from apps.cms.cache.element import CacheElement
from apps.cms.templating import DjangoTemplating, default_templating


class BaseBlockService:
    """
    Render strategy for one block type.

    Subclasses implement ``execute``; ``get_cache_element`` identifies the
    rendering for caching and invalidation. Services are shared across
    requests and must not keep per-request state.
    """

    default_settings: Dict[str, Any] = {}

    def __init__(self, name: str, templating: Optional[DjangoTemplating] = None) -> None:
        self.name = name
        self.templating = templating or default_templating

    def get_settings(self, block) -> Dict[str, Any]:
        merged = dict(self.default_settings)
        merged.update(block.settings or {})
        return merged

    def get_cache_keys(self, block) -> Dict[str, Any]:
        updated = getattr(block, "updated_at", None)
        return {
            "block_id": block.pk,
            "page_id": block.page_id,
            "updated_at": updated.isoformat() if updated else "",
        }

    def get_cache_element(self, block) -> CacheElement:
        ttl = block.get_setting("ttl")
        try:
            ttl = int(ttl) if ttl is not None else None
        except (TypeError, ValueError):
            ttl = None
        return CacheElement(self.get_cache_keys(block), ttl=ttl)

    def execute(self, block, page, response: HttpResponse, *, manager=None) -> HttpResponse:
        raise NotImplementedError

    def render_response(self, template_name: str, params: Dict[str, Any], response: HttpResponse) -> HttpResponse:
        return self.templating.render_response(template_name, params, response)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<{self.__class__.__name__} name={self.name!r}>"

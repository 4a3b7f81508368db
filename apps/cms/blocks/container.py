# apps/cms/blocks/container.py
from __future__ import annotations

from django.utils.safestring import mark_safe

from apps.cms.blocks.base import BaseBlockService
from apps.cms.text import mustache_replace


class ContainerBlockService(BaseBlockService):
    """
    Renders a named slot: every enabled child, in position order, is rendered
    through the manager and the result is injected into the ``layout``
    setting at ``{{ CONTENT }}``.
    """

    default_settings = {
        "name": "",
        "layout": "{{ CONTENT }}",
    }

    def execute(self, block, page, response, *, manager=None):
        fragments = []
        if manager is not None:
            for child in block.loaded_children:
                if not child.enabled:
                    continue
                child_response = manager.render_block(child, page)
                fragments.append(child_response.content.decode(child_response.charset or "utf-8"))

        settings = self.get_settings(block)
        body = mustache_replace(settings.get("layout") or "{{ CONTENT }}", {"CONTENT": "".join(fragments)})

        return self.render_response(
            "cms/blocks/container.html",
            {
                "block": block,
                "page": page,
                "name": settings.get("name") or "",
                "content": mark_safe(body),
            },
            response,
        )

# apps/cms/blocks/text.py
from __future__ import annotations

from django.utils.safestring import mark_safe

from apps.cms.blocks.base import BaseBlockService


class TextBlockService(BaseBlockService):
    default_settings = {
        "content": "",
    }

    def execute(self, block, page, response, *, manager=None):
        settings = self.get_settings(block)
        return self.render_response(
            "cms/blocks/text.html",
            {"block": block, "page": page, "content": mark_safe(settings.get("content") or "")},
            response,
        )

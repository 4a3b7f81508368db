# apps/cms/blocks/template.py
from __future__ import annotations

from apps.cms.blocks.base import BaseBlockService


class TemplateBlockService(BaseBlockService):
    """Renders an arbitrary Django template with the block ``context`` setting."""

    default_settings = {
        "template": "",
        "context": {},
    }

    def get_cache_keys(self, block):
        keys = super().get_cache_keys(block)
        keys["template"] = block.get_setting("template", "")
        return keys

    def execute(self, block, page, response, *, manager=None):
        settings = self.get_settings(block)
        template_name = (settings.get("template") or "").strip()
        if not template_name:
            raise ValueError(f"Block {block.pk} has no 'template' setting")

        params = dict(settings.get("context") or {})
        params.update({"block": block, "page": page})
        return self.render_response(template_name, params, response)

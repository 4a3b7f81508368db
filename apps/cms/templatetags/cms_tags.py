"""Template tags rendering CMS slots and blocks through the request manager."""
from __future__ import annotations

from django import template
from django.utils.safestring import mark_safe

from apps.cms.context import get_manager

register = template.Library()


def _manager(context):
    manager = context.get("manager")
    if manager is None:
        request = context.get("request")
        if request is None:
            raise template.TemplateSyntaxError("cms tags need a 'manager' or a 'request' in the context")
        manager = get_manager(request)
    return manager


@register.simple_tag(takes_context=True)
def cms_container(context, name, page=None, parent=None):
    """``{% cms_container "sidebar" %}``: renders (and creates if needed) the named slot."""
    manager = _manager(context)
    page = page if page is not None else context.get("page")
    return mark_safe(manager.render_container(name, page, parent))


@register.simple_tag(takes_context=True)
def cms_block(context, block, page=None):
    if block is None:
        return ""
    manager = _manager(context)
    page = page if page is not None else context.get("page") or block.page
    response = manager.render_block(block, page)
    return mark_safe(response.content.decode(response.charset or "utf-8"))

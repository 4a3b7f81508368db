from __future__ import annotations

import logging
from typing import Callable, Optional

from django.http import HttpRequest, HttpResponse
from django.utils.safestring import mark_safe

from apps.cms.conf import ErrorPolicy
from apps.cms.context import get_manager
from apps.cms.decorator import DecoratorStrategy, request_kind

logger = logging.getLogger("cms.decorator")


class PageDecoratorMiddleware:
    """
    Wraps decorable HTML responses of hybrid pages in their page template.

    The original body is passed to the template as ``content`` and the page
    TTL becomes the shared cache max-age. Pages with ``decorate=False`` and
    pure CMS pages pass through untouched.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse], strategy: Optional[DecoratorStrategy] = None):
        self.get_response = get_response
        self._strategy = strategy

    @property
    def strategy(self) -> DecoratorStrategy:
        return self._strategy or DecoratorStrategy.from_config()

    def __call__(self, request: HttpRequest) -> HttpResponse:
        response = self.get_response(request)
        return self.process_response(request, response)

    def process_response(self, request: HttpRequest, response: HttpResponse) -> HttpResponse:
        if getattr(response, "streaming", False):
            return response

        if not self.strategy.is_decorable(request, request_kind(request), response):
            return response

        manager = get_manager(request)
        page = manager.define_current_page(request)
        if page is None or not page.is_hybrid or not page.decorate:
            return response

        content = response.content.decode(response.charset or "utf-8")
        try:
            return manager.render_page(page, {"content": mark_safe(content)}, response)
        except Exception as exc:
            logger.critical(
                "cms_decorate_failed page.id=%s path=%s error=%s",
                page.pk,
                request.path,
                exc,
                exc_info=True,
            )
            if manager.policy is ErrorPolicy.STRICT:
                raise
            return response

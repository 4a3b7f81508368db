from __future__ import annotations

import logging

from django.contrib.auth.views import redirect_to_login
from django.http import Http404, HttpResponse
from django.views import View

from apps.cms.context import get_manager
from apps.cms.exceptions import NotFoundError

logger = logging.getLogger("cms.manager")


def slug_from_path(path: str) -> str:
    parts = [p for p in (path or "").strip("/").split("/") if p]
    return parts[-1] if parts else ""


class CmsPageView(View):
    """Serves pure CMS pages, resolved by the last segment of the path."""

    http_method_names = ["get", "head"]

    def get(self, request, path: str = "", *args, **kwargs) -> HttpResponse:
        slug = slug_from_path(path)
        if not slug:
            raise Http404("No CMS page for this path")

        manager = get_manager(request)
        try:
            page = manager.get_page(slug)
        except NotFoundError as exc:
            raise Http404(str(exc)) from exc

        if not page.enabled:
            logger.info("cms_page_disabled page.id=%s slug=%s", page.pk, slug)
            raise Http404("Page disabled")

        if page.login_required and not request.user.is_authenticated:
            return redirect_to_login(request.get_full_path())

        manager.set_current_page(page)
        return manager.render_page(page, {"content": ""})


def healthz(request) -> HttpResponse:
    return HttpResponse("ok", content_type="text/plain")

from __future__ import annotations

import logging
from typing import Callable, Optional

from django.http import Http404, HttpRequest, HttpResponse
from django.template.loader import render_to_string
from django.utils import translation

from apps.cms.conf import PAGE_SLUG_ROUTE, ErrorPolicy
from apps.cms.config.loader import get_http_errors
from apps.cms.context import get_manager
from apps.cms.decorator import DecoratorStrategy, route_name_for
from apps.cms.exceptions import InternalError
from apps.cms.models import Page

logger = logging.getLogger("cms.errors")

_HANDLED_ATTR = "_cms_error_handled"


def is_editor(request: HttpRequest) -> bool:
    user = getattr(request, "user", None)
    return bool(user is not None and user.is_authenticated and user.is_staff)


def status_code_for(exception: BaseException) -> int:
    return 404 if isinstance(exception, Http404) else 500


class ErrorPageMiddleware:
    """
    Replaces uncaught errors with the CMS page configured for the status code
    (``http_errors`` in the CMS config).

    Staff users hitting a 404 on a URI that no view claims get the page
    creation screen instead.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse], strategy: Optional[DecoratorStrategy] = None):
        self.get_response = get_response
        self._strategy = strategy

    @property
    def strategy(self) -> DecoratorStrategy:
        return self._strategy or DecoratorStrategy.from_config()

    def __call__(self, request: HttpRequest) -> HttpResponse:
        return self.get_response(request)

    # --- configuration ---

    @staticmethod
    def http_error_codes() -> dict:
        return get_http_errors()

    def has_error_code(self, status_code: int) -> bool:
        return int(status_code) in self.http_error_codes()

    def get_error_code_page(self, request: HttpRequest, status_code: int) -> Page:
        if not self.has_error_code(status_code):
            raise InternalError(f"There is no page configured to handle the status code {status_code}")
        route_name = self.http_error_codes()[int(status_code)]
        return get_manager(request).get_page_by_route_name(route_name)

    # --- hooks ---

    def process_exception(self, request: HttpRequest, exception: Exception) -> Optional[HttpResponse]:
        if isinstance(exception, Http404) and is_editor(request):
            response = self._creatable_response(request)
            if response is not None:
                return response

        if isinstance(exception, InternalError):
            return self.handle_internal_error(request, exception)
        return self.handle_native_error(request, exception)

    def _creatable_response(self, request: HttpRequest) -> Optional[HttpResponse]:
        route_name = route_name_for(request)
        creatable = (not route_name or route_name == PAGE_SLUG_ROUTE) and self.strategy.is_route_uri_decorable(
            request.path_info
        )
        if not creatable:
            return None

        manager = get_manager(request)
        content = render_to_string(
            "cms/create.html",
            {"path_info": request.path_info, "site": manager.site, "creatable": creatable},
            request=request,
        )
        return HttpResponse(content, status=404)

    def handle_internal_error(self, request: HttpRequest, exception: Exception) -> Optional[HttpResponse]:
        if get_manager(request).policy is not ErrorPolicy.STRICT:
            logger.error("cms_internal_error path=%s error=%s", request.path, exception, exc_info=exception)
            return None

        content = render_to_string("cms/internal_error.html", {"exception": exception}, request=request)
        return HttpResponse(content, status=500)

    def handle_native_error(self, request: HttpRequest, exception: Exception) -> Optional[HttpResponse]:
        manager = get_manager(request)
        if manager.policy is ErrorPolicy.STRICT:
            return None

        if getattr(request, _HANDLED_ATTR, False):
            return None
        setattr(request, _HANDLED_ATTR, True)

        status_code = status_code_for(exception)
        route_name = route_name_for(request)
        if route_name and not self.strategy.is_route_name_decorable(route_name):
            return None
        if not self.strategy.is_route_uri_decorable(request.path_info):
            return None
        if not self.has_error_code(status_code):
            return None

        self._log(exception, status_code, f"{type(exception).__name__}: {exception} (uncaught exception) at {request.path}")

        try:
            page = self.get_error_code_page(request, status_code)
            manager.set_current_page(page)

            locale = getattr(page.site, "locale", "") if page.site_id else ""
            if locale and locale != translation.get_language():
                translation.activate(locale)
                request.LANGUAGE_CODE = locale

            return manager.render_page(page, {"content": ""}, HttpResponse(status=status_code))
        except Exception as exc:
            self._log(exc, status_code, f"Exception thrown when handling an exception ({type(exc).__name__}: {exc})")
            return self.handle_internal_error(request, exc)

    @staticmethod
    def _log(exception: BaseException, status_code: int, message: str) -> None:
        if status_code >= 500:
            logger.critical(message, exc_info=exception)
        else:
            logger.error(message, exc_info=exception)

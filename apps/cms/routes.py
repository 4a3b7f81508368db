"""
Synchronisation between the Django URL configuration and hybrid pages.

Every named, decorable route gets a page; pages whose route disappeared are
reported (or deleted with ``clean``) and the error pages configured in
``http_errors`` are created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, TextIO

from django.urls import URLPattern, URLResolver, get_resolver

from apps.cms.conf import ERROR_ROUTE_PREFIX, PAGE_SLUG_ROUTE, error_route_name
from apps.cms.config.loader import get_http_errors
from apps.cms.decorator import DecoratorStrategy
from apps.cms.exceptions import ConfigurationError
from apps.cms.stores import DjangoPageStore, PageStore
from apps.cms.text import mustache_replace

log = logging.getLogger("cms.routes")

ROUTE_PAGE_NAME = "{{ route }}"
ERROR_PAGE_NAME = "Error {{ code }}"


@dataclass(frozen=True)
class RouteInfo:
    name: str
    url: str
    has_params: bool = False


def _clean_part(part: str) -> str:
    return part.lstrip("^").replace("\\Z", "").rstrip("$")


def iter_routes(
    patterns: Optional[Iterable] = None,
    prefix: str = "",
    namespace: Optional[str] = None,
    has_params: bool = False,
) -> Iterator[RouteInfo]:
    """Flatten the URL configuration into named routes (``ns:name``, url, params flag)."""
    if patterns is None:
        patterns = get_resolver().url_patterns

    for entry in patterns:
        part = _clean_part(str(entry.pattern))
        params = has_params or entry.pattern.regex.groups > 0

        if isinstance(entry, URLResolver):
            ns = entry.namespace
            child_ns = f"{namespace}:{ns}" if namespace and ns else (ns or namespace)
            yield from iter_routes(entry.url_patterns, prefix + part, child_ns, params)
        elif isinstance(entry, URLPattern) and entry.name:
            name = f"{namespace}:{entry.name}" if namespace else entry.name
            yield RouteInfo(name=name, url="/" + prefix + part, has_params=params)


class RoutePageGenerator:
    def __init__(
        self,
        page_store: Optional[PageStore] = None,
        strategy: Optional[DecoratorStrategy] = None,
        http_errors: Optional[dict] = None,
    ) -> None:
        self.page_store = page_store or DjangoPageStore()
        self.strategy = strategy or DecoratorStrategy.from_config()
        self.http_errors = http_errors if http_errors is not None else get_http_errors()

    def _write(self, stdout: Optional[TextIO], status: str, name: str, detail: str = "") -> None:
        line = f"  {status:<8} {name:<50} {detail}".rstrip()
        log.info("cms_route_sync %s %s %s", status, name, detail)
        if stdout is not None:
            stdout.write(line + "\n")

    def update(self, site=None, stdout: Optional[TextIO] = None, clean: bool = False, routes: Optional[List[RouteInfo]] = None) -> dict:
        """
        Create or update the hybrid pages of ``site``.

        Returns a ``{status: count}`` summary; each action is also written to
        ``stdout`` as ``STATUS  route  url``.
        """
        template = self.page_store.get_default_template()
        if not template:
            raise ConfigurationError("No default template defined")

        summary = {"CREATE": 0, "UPDATE": 0, "DISABLE": 0, "ERROR": 0, "REMOVED": 0}
        known_routes = set()

        for route in routes if routes is not None else iter_routes():
            if route.name == PAGE_SLUG_ROUTE:
                continue
            known_routes.add(route.name)
            page = self.page_store.find_by_route_name(route.name, site=site)

            if not self.strategy.is_route_name_decorable(route.name) or not self.strategy.is_route_uri_decorable(route.url):
                if page is not None and page.enabled:
                    page.enabled = False
                    self.page_store.save(page)
                    self._write(stdout, "DISABLE", route.name, route.url)
                    summary["DISABLE"] += 1
                continue

            if page is None:
                page = self.page_store.create(
                    route_name=route.name,
                    name=mustache_replace(ROUTE_PAGE_NAME, {"route": route.name}),
                    url=route.url,
                    template_code=template,
                    site=site,
                    enabled=not route.has_params,
                    decorate=True,
                )
                self.page_store.save(page)
                if route.has_params:
                    self._write(stdout, "DISABLE", route.name, route.url)
                    summary["DISABLE"] += 1
                else:
                    self._write(stdout, "CREATE", route.name, route.url)
                    summary["CREATE"] += 1
                continue

            page.url = route.url
            self.page_store.save(page)
            self._write(stdout, "UPDATE", route.name, route.url)
            summary["UPDATE"] += 1

        for code in sorted(self.http_errors):
            route_name = self.http_errors[code] or error_route_name(code)
            known_routes.add(route_name)
            if self.page_store.find_by_route_name(route_name, site=site) is not None:
                continue
            page = self.page_store.create(
                route_name=route_name,
                name=mustache_replace(ERROR_PAGE_NAME, {"code": code}),
                url="",
                template_code=template,
                site=site,
                enabled=True,
                decorate=False,
            )
            self.page_store.save(page)
            self._write(stdout, "CREATE", route_name, str(code))
            summary["CREATE"] += 1

        header_written = False
        for page in self.page_store.get_hybrid_pages(site=site):
            if page.route_name in known_routes or page.route_name.startswith(ERROR_ROUTE_PREFIX):
                continue
            if not header_written and stdout is not None:
                stdout.write("Some hybrid pages do not exist anymore\n")
                header_written = True
            if clean:
                self.page_store.delete(page)
                self._write(stdout, "REMOVED", page.route_name)
                summary["REMOVED"] += 1
            else:
                self._write(stdout, "ERROR", page.route_name)
                summary["ERROR"] += 1

        return summary

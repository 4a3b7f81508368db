# apps/cms/decorator.py
from __future__ import annotations
from enum import Enum
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern
import logging
import re

from apps.cms.config.loader import get_decorator_rules

log = logging.getLogger("cms.decorator")

XHR_HEADER = "X-Requested-With"
XHR_MARKER = "XMLHttpRequest"


class RequestKind(str, Enum):
    MASTER = "master"
    SUB = "sub"


def request_kind(request) -> RequestKind:
    return RequestKind.SUB if getattr(request, "cms_sub_request", False) else RequestKind.MASTER


def route_name_for(request) -> str:
    match = getattr(request, "resolver_match", None)
    return (getattr(match, "view_name", "") or "") if match else ""


def _compile(patterns: Iterable[str]) -> List[Pattern[str]]:
    return [re.compile(p) for p in patterns or []]


class DecoratorStrategy:
    """
    Decides whether a response gets wrapped in page chrome.

    Pure predicate over the request/response pair and static deny lists;
    never raises.
    """

    def __init__(
        self,
        ignore_routes: Optional[Iterable[str]] = None,
        ignore_route_patterns: Optional[Iterable[str]] = None,
        ignore_uri_patterns: Optional[Iterable[str]] = None,
    ) -> None:
        self.ignore_routes = frozenset(ignore_routes or ())
        self.ignore_route_patterns = _compile(ignore_route_patterns or ())
        self.ignore_uri_patterns = _compile(ignore_uri_patterns or ())

    @classmethod
    def from_config(cls) -> "DecoratorStrategy":
        """Strategy built from the YAML deny lists, shared while the rules are unchanged."""
        rules = get_decorator_rules()
        return _cached_strategy(
            cls,
            tuple(rules.get("ignore_routes") or ()),
            tuple(rules.get("ignore_route_patterns") or ()),
            tuple(rules.get("ignore_uri_patterns") or ()),
        )

    def is_decorable(self, request, kind: RequestKind, response) -> bool:
        if kind != RequestKind.MASTER:
            return False

        content_type = (response.get("Content-Type") or "text/html").split(";")[0].strip().lower()
        if content_type != "text/html":
            return False

        if response.status_code != 200:
            return False

        if request.headers.get(XHR_HEADER) == XHR_MARKER:
            return False

        return self.is_route_name_decorable(route_name_for(request)) and self.is_route_uri_decorable(
            request.get_full_path()
        )

    def is_route_name_decorable(self, route_name: Optional[str]) -> bool:
        if not route_name:
            return False
        if route_name in self.ignore_routes:
            return False
        return not any(p.search(route_name) for p in self.ignore_route_patterns)

    def is_route_uri_decorable(self, uri: Optional[str]) -> bool:
        uri = uri or ""
        return not any(p.search(uri) for p in self.ignore_uri_patterns)


@lru_cache(maxsize=4)
def _cached_strategy(cls, ignore_routes, ignore_route_patterns, ignore_uri_patterns) -> DecoratorStrategy:
    # Deny regexes are compiled once per loaded rule set.
    return cls(
        ignore_routes=ignore_routes,
        ignore_route_patterns=ignore_route_patterns,
        ignore_uri_patterns=ignore_uri_patterns,
    )

# apps/cms/cache/invalidation.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List
import logging

from apps.cms.cache.backends import BaseCacheBackend
from apps.cms.cache.element import CacheElement

log = logging.getLogger("cms.cache")


@dataclass
class InvalidationReport:
    invalidated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class SimpleCacheInvalidation:
    """
    Forwards a cache element to every backend, one after the other.

    Collect-and-continue: a backend that raises is logged and recorded in the
    report, and the remaining backends are still invalidated. Nothing is
    raised past this boundary.
    """

    def invalidate(self, backends: Iterable[BaseCacheBackend], element: CacheElement) -> InvalidationReport:
        report = InvalidationReport()
        seen: set[int] = set()
        for backend in backends:
            if id(backend) in seen:
                continue
            seen.add(id(backend))
            try:
                backend.invalidate(element)
            except Exception:
                log.exception("Cache invalidation failed backend=%s keys=%s", backend.name, element.keys)
                report.failed.append(backend.name)
                continue
            report.invalidated.append(backend.name)

        log.info(
            "Cache invalidation keys=%s invalidated=%s failed=%s",
            element.keys,
            report.invalidated,
            report.failed,
        )
        return report

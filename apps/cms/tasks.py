"""Celery tasks for the CMS block cache."""

from __future__ import annotations

import logging

from celery import shared_task

from apps.cms.cache.element import CacheElement
from apps.cms.cache.invalidation import SimpleCacheInvalidation
from apps.cms.registry import get_cache_backends

logger = logging.getLogger("cms.tasks")


@shared_task(queue="default", ignore_result=True)
def invalidate_block_cache(block_id: int) -> dict:
    """Drop every cached rendering of ``block_id`` from all configured backends."""
    element = CacheElement({"block_id": int(block_id)})
    report = SimpleCacheInvalidation().invalidate(get_cache_backends().backends(), element)
    if not report.ok:
        logger.warning("cms_invalidate_partial block_id=%s failed=%s", block_id, report.failed)
    else:
        logger.info("cms_invalidate_ok block_id=%s backends=%s", block_id, report.invalidated)
    return {"block_id": int(block_id), "invalidated": report.invalidated, "failed": report.failed}

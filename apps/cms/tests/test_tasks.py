from __future__ import annotations

from unittest.mock import patch

from django.core.cache import cache
from django.http import HttpResponse
from django.test import TestCase, TransactionTestCase

from apps.cms.cache.element import CacheElement
from apps.cms.conf import ErrorPolicy
from apps.cms.manager import CmsManager
from apps.cms.models import Block, Page
from apps.cms.registry import get_cache_backends
from apps.cms.tasks import invalidate_block_cache
from pagedeck import celery_app


class InvalidateBlockCacheTaskTests(TestCase):
    def setUp(self) -> None:
        cache.clear()
        self.page = Page.objects.create(name="Home", route_name="home")

    def test_task_drops_cached_renderings(self) -> None:
        backend = get_cache_backends().get("core.text")
        element = CacheElement({"block_id": 42, "page_id": self.page.pk, "updated_at": "x"})
        backend.set(element.with_value(HttpResponse("cached")))

        result = invalidate_block_cache(42)

        self.assertFalse(backend.has(element))
        self.assertEqual(result["failed"], [])
        self.assertIn("django", result["invalidated"])

    def test_creating_a_block_enqueues_nothing(self) -> None:
        with patch("apps.cms.tasks.invalidate_block_cache.delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                Block.objects.create(page=self.page, type="core.text")
        delay.assert_not_called()

    def test_updating_a_block_enqueues_invalidation_after_commit(self) -> None:
        block = Block.objects.create(page=self.page, type="core.text")
        with patch("apps.cms.tasks.invalidate_block_cache.delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                block.set_setting("content", "updated")
                block.save()
        delay.assert_called_once_with(block.pk)

    def test_deleting_a_block_enqueues_invalidation(self) -> None:
        block = Block.objects.create(page=self.page, type="core.text")
        block_id = block.pk
        with patch("apps.cms.tasks.invalidate_block_cache.delay") as delay:
            with self.captureOnCommitCallbacks(execute=True):
                block.delete()
        delay.assert_called_once_with(block_id)

    def test_unreachable_broker_is_logged_not_raised(self) -> None:
        block = Block.objects.create(page=self.page, type="core.text")
        with patch(
            "apps.cms.tasks.invalidate_block_cache.delay",
            side_effect=ConnectionRefusedError(111, "Connection refused"),
        ):
            with self.assertLogs("cms.tasks", level="ERROR") as logs:
                with self.captureOnCommitCallbacks(execute=True):
                    block.save()
        self.assertIn(f"block_id={block.pk}", logs.output[0])


class BlockSignalsAutocommitTests(TransactionTestCase):
    def setUp(self) -> None:
        cache.clear()

    def test_project_celery_app_runs_tasks_eagerly(self) -> None:
        self.assertTrue(celery_app.conf.task_always_eager)

    def test_slot_creation_and_edit_run_without_broker(self) -> None:
        manager = CmsManager(policy=ErrorPolicy.DEGRADE)
        page = manager.get_page_by_route_name("home")

        container = manager.find_container("sidebar", page)
        self.assertTrue(Block.objects.filter(pk=container.pk).exists())

        text = Block.objects.create(page=page, parent=container, type="core.text", settings={"content": "a"})
        backend = get_cache_backends().get("core.text")
        element = CacheElement({"block_id": text.pk, "page_id": page.pk, "updated_at": "x"})
        backend.set(element.with_value(HttpResponse("cached")))
        self.assertTrue(backend.has(element))

        text.set_setting("content", "b")
        text.save()

        self.assertFalse(backend.has(element))

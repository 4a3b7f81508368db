from __future__ import annotations

from django.http import HttpResponse
from django.test import SimpleTestCase
from django.utils.safestring import mark_safe

from apps.cms.blocks.base import BaseBlockService
from apps.cms.blocks.container import ContainerBlockService
from apps.cms.cache.backends import NoopCache, RequestCache
from apps.cms.cache.element import CacheElement
from apps.cms.conf import CONTAINER_TYPE, ErrorPolicy
from apps.cms.exceptions import ConfigurationError, RenderError
from apps.cms.manager import CmsManager
from apps.cms.models import Block, Page
from apps.cms.registry import BlockServiceRegistry, CacheBackendRegistry


class CountingService(BaseBlockService):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.calls = 0

    def execute(self, block, page, response, *, manager=None):
        self.calls += 1
        response.content = f"<b>{block.get_setting('label', '')}</b>"
        return response


class FailingService(BaseBlockService):
    def execute(self, block, page, response, *, manager=None):
        raise ValueError("template exploded")


def _block(pk, block_type, **settings):
    block = Block(pk=pk, page_id=1, type=block_type, settings=settings)
    block.set_loaded_children([])
    return block


class RenderBlockTests(SimpleTestCase):
    def setUp(self) -> None:
        self.counting = CountingService("test.counting")
        self.cache = RequestCache("request")

        self.services = BlockServiceRegistry()
        self.services.register("test.counting", self.counting)
        self.services.register("test.failing", FailingService("test.failing"))
        self.services.register(CONTAINER_TYPE, ContainerBlockService(CONTAINER_TYPE))

        self.backends = CacheBackendRegistry()
        self.backends.register("test.counting", self.cache)
        self.backends.register("test.failing", NoopCache("noop"))
        self.backends.register(CONTAINER_TYPE, NoopCache("noop"), override=True)

        self.page = Page(pk=1, name="Home", route_name="home")

    def _manager(self, policy=ErrorPolicy.DEGRADE) -> CmsManager:
        return CmsManager(block_services=self.services, cache_backends=self.backends, policy=policy)

    def test_block_executed_once_per_cache_key(self) -> None:
        manager = self._manager()
        block = _block(10, "test.counting", label="hi")

        first = manager.render_block(block, self.page)
        second = manager.render_block(block, self.page)

        self.assertEqual(self.counting.calls, 1)
        self.assertEqual(first.content, b"<b>hi</b>")
        self.assertEqual(second.content, b"<b>hi</b>")

    def test_use_cache_false_always_executes(self) -> None:
        manager = self._manager()
        block = _block(10, "test.counting", label="hi")

        manager.render_block(block, self.page, use_cache=False)
        manager.render_block(block, self.page, use_cache=False)

        self.assertEqual(self.counting.calls, 2)
        self.assertEqual(len(self.cache), 0)

    def test_invalidate_forces_new_execution(self) -> None:
        manager = self._manager()
        block = _block(10, "test.counting", label="hi")
        manager.render_block(block, self.page)

        report = manager.invalidate(CacheElement({"block_id": 10}))
        manager.render_block(block, self.page)

        self.assertTrue(report.ok)
        self.assertEqual(self.counting.calls, 2)

    def test_unknown_block_type_degrades_with_one_critical_log(self) -> None:
        manager = self._manager()

        with self.assertLogs("cms.manager", level="CRITICAL") as logs:
            response = manager.render_block(_block(11, "widget.unknown"), self.page)

        self.assertEqual(response.content, b"")
        self.assertEqual(len(logs.records), 1)

    def test_unknown_block_type_strict(self) -> None:
        manager = self._manager(ErrorPolicy.STRICT)
        with self.assertRaises(ConfigurationError):
            manager.render_block(_block(11, "widget.unknown"), self.page)

    def test_failing_block_degrades_to_empty_response(self) -> None:
        manager = self._manager()
        with self.assertLogs("cms.manager", level="CRITICAL"):
            response = manager.render_block(_block(12, "test.failing"), self.page)
        self.assertEqual(response.content, b"")

    def test_failing_block_strict_raises_render_error(self) -> None:
        manager = self._manager(ErrorPolicy.STRICT)
        with self.assertLogs("cms.manager", level="CRITICAL"):
            with self.assertRaises(RenderError) as ctx:
                manager.render_block(_block(12, "test.failing"), self.page)
        self.assertIsInstance(ctx.exception.__cause__, ValueError)
        self.assertEqual(ctx.exception.block_id, 12)

    def test_block_service_lookup(self) -> None:
        self.assertIsNone(self._manager().get_block_service(_block(1, "widget.unknown")))
        with self.assertRaises(ConfigurationError):
            self._manager(ErrorPolicy.STRICT).get_block_service(_block(1, "widget.unknown"))

    def test_cache_service_lookup_always_fails_for_unknown_type(self) -> None:
        for policy in ErrorPolicy:
            with self.subTest(policy=policy):
                with self.assertRaises(ConfigurationError):
                    self._manager(policy).get_cache_service(_block(1, "widget.unknown"))

    def test_container_renders_enabled_children_in_order(self) -> None:
        manager = self._manager()
        container = _block(20, CONTAINER_TYPE, name="main", layout="<section>{{ CONTENT }}</section>")
        container.set_loaded_children([
            _block(21, "test.counting", label="one"),
            Block(pk=22, page_id=1, type="test.counting", settings={"label": "off"}, enabled=False),
            _block(23, "test.counting", label="two"),
        ])

        body = manager.render_block(container, self.page).content.decode()

        self.assertIn("<section><b>one</b><b>two</b></section>", body)
        self.assertNotIn("off", body)

    def test_failing_child_does_not_break_container(self) -> None:
        manager = self._manager()
        container = _block(20, CONTAINER_TYPE, name="main")
        container.set_loaded_children([_block(24, "test.failing"), _block(25, "test.counting", label="ok")])

        with self.assertLogs("cms.manager", level="CRITICAL"):
            body = manager.render_block(container, self.page).content.decode()

        self.assertIn("<b>ok</b>", body)


class RenderContainerTests(SimpleTestCase):
    def test_no_page_renders_placeholder(self) -> None:
        manager = CmsManager(
            block_services=BlockServiceRegistry(),
            cache_backends=CacheBackendRegistry(),
            policy=ErrorPolicy.DEGRADE,
        )
        body = manager.render_container("sidebar")
        self.assertIn("No page available", body)
        self.assertIn("sidebar", body)

    def test_render_page_keeps_response_and_applies_ttl(self) -> None:
        manager = CmsManager(policy=ErrorPolicy.DEGRADE)
        page = Page(pk=1, name="Home", route_name="home", ttl=90)
        page.set_root_blocks([])
        manager.render_container = lambda name, page=None, parent=None: ""

        response = HttpResponse("ignored", status=200)
        response["X-Custom"] = "kept"
        rendered = manager.render_page(page, {"content": mark_safe("<p>body</p>")}, response)

        self.assertIs(rendered, response)
        self.assertEqual(rendered["X-Custom"], "kept")
        self.assertIn("<p>body</p>", rendered.content.decode())
        self.assertIn("s-maxage=90", rendered["Cache-Control"])

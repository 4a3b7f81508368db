from __future__ import annotations

from django.core.cache import cache
from django.test import TestCase, override_settings

from apps.cms.conf import PAGE_SLUG_ROUTE
from apps.cms.models import Block, Page


@override_settings(ROOT_URLCONF="apps.cms.tests.urls_hybrid")
class PageDecoratorMiddlewareTests(TestCase):
    def setUp(self) -> None:
        cache.clear()

    def test_hybrid_page_wraps_view_body_and_sets_ttl(self) -> None:
        Page.objects.create(name="Hello", route_name="hello", template_code="default", ttl=120)

        response = self.client.get("/hello/")

        body = response.content.decode()
        self.assertEqual(response.status_code, 200)
        self.assertIn("<p>hello from view</p>", body)
        self.assertIn("<title>Hello</title>", body)
        self.assertIn("cms-main", body)
        self.assertIn("s-maxage=120", response["Cache-Control"])

    def test_page_is_created_on_first_visit(self) -> None:
        response = self.client.get("/hello/")

        self.assertEqual(response.status_code, 200)
        page = Page.objects.get(route_name="hello")
        self.assertEqual(page.template_code, "default")
        self.assertIn("<p>hello from view</p>", response.content.decode())
        self.assertIn("s-maxage=0", response["Cache-Control"])

    def test_slots_are_created_and_rendered(self) -> None:
        page = Page.objects.create(name="Hello", route_name="hello", template_code="default")
        header = Block.objects.create(page=page, type="core.container", settings={"name": "header"}, position=1)
        Block.objects.create(page=page, parent=header, type="core.text", settings={"content": "<nav>menu</nav>"})

        body = self.client.get("/hello/").content.decode()

        self.assertIn("<nav>menu</nav>", body)
        names = {b.get_setting("name") for b in Block.objects.filter(page=page, parent__isnull=True)}
        self.assertEqual(names, {"header", "content_top", "footer"})

    def test_page_template_is_used(self) -> None:
        Page.objects.create(name="Hello", route_name="hello", template_code="two_columns")
        body = self.client.get("/hello/").content.decode()
        self.assertIn("cms-2columns", body)
        self.assertIn("<p>hello from view</p>", body)

    def test_decorate_false_passes_through(self) -> None:
        Page.objects.create(name="Hello", route_name="hello", template_code="default", decorate=False)
        response = self.client.get("/hello/")
        self.assertEqual(response.content, b"<p>hello from view</p>")

    def test_json_response_untouched(self) -> None:
        response = self.client.get("/data/")
        self.assertEqual(response.json(), {"ok": True})
        self.assertFalse(Page.objects.filter(route_name="data").exists())

    def test_xhr_untouched(self) -> None:
        response = self.client.get("/hello/", HTTP_X_REQUESTED_WITH="XMLHttpRequest")
        self.assertEqual(response.content, b"<p>hello from view</p>")

    def test_ignored_routes_untouched(self) -> None:
        for path in ("/ignored/", "/raw/"):
            with self.subTest(path=path):
                self.assertEqual(self.client.get(path).content, b"<p>hello from view</p>")
        self.assertFalse(Page.objects.exists())

    def test_pure_cms_page_is_not_decorated_twice(self) -> None:
        Page.objects.create(name="About", slug="about", route_name=PAGE_SLUG_ROUTE, template_code="default")
        body = self.client.get("/about/").content.decode()
        self.assertEqual(body.count("<html"), 1)

    def test_request_id_is_echoed(self) -> None:
        response = self.client.get("/hello/", HTTP_X_REQUEST_ID="abc123")
        self.assertEqual(response["X-Request-ID"], "abc123")

from __future__ import annotations

import io

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings

from apps.cms.decorator import DecoratorStrategy
from apps.cms.models import Page
from apps.cms.routes import RouteInfo, RoutePageGenerator, iter_routes

ROUTES = [
    RouteInfo("route1", "/first_custom_route"),
    RouteInfo("route2", "/second_custom_route"),
    RouteInfo("moved_route", "/third_custom_route"),
    RouteInfo("with_param", "/items/<int:pk>/", has_params=True),
    RouteInfo("admin:index", "/admin/"),
]


class RoutePageGeneratorTests(TestCase):
    def setUp(self) -> None:
        Page.objects.create(name="Moved", route_name="moved_route", url="/old_url", template_code="default")
        Page.objects.create(name="Gone", route_name="test_hybrid_page_not_exists", template_code="default")
        Page.objects.create(name="Admin", route_name="admin:index", template_code="default")
        self.generator = RoutePageGenerator(
            strategy=DecoratorStrategy(ignore_route_patterns=["^admin:"]),
            http_errors={404: "_page_internal_error_404", 500: "_page_internal_error_500"},
        )

    def _run(self, clean=False):
        out = io.StringIO()
        summary = self.generator.update(None, out, clean=clean, routes=ROUTES)
        return summary, out.getvalue()

    def test_update_routes(self) -> None:
        summary, output = self._run()

        self.assertRegex(output, r"CREATE.*route1.*/first_custom_route")
        self.assertRegex(output, r"CREATE.*route2.*/second_custom_route")
        self.assertRegex(output, r"UPDATE.*moved_route.*/third_custom_route")
        self.assertRegex(output, r"DISABLE.*with_param.*/items/")
        self.assertRegex(output, r"DISABLE.*admin:index")
        self.assertRegex(output, r"CREATE.*_page_internal_error_404.*404")
        self.assertRegex(output, r"CREATE.*_page_internal_error_500.*500")
        self.assertRegex(output, r"ERROR.*test_hybrid_page_not_exists")

        self.assertEqual(Page.objects.get(route_name="moved_route").url, "/third_custom_route")
        self.assertFalse(Page.objects.get(route_name="with_param").enabled)
        self.assertFalse(Page.objects.get(route_name="admin:index").enabled)
        self.assertTrue(Page.objects.filter(route_name="test_hybrid_page_not_exists").exists())
        self.assertEqual(summary["CREATE"], 4)
        self.assertEqual(summary["ERROR"], 1)

    def test_update_routes_clean(self) -> None:
        summary, output = self._run(clean=True)

        self.assertRegex(output, r"REMOVED.*test_hybrid_page_not_exists")
        self.assertFalse(Page.objects.filter(route_name="test_hybrid_page_not_exists").exists())
        self.assertEqual(summary["REMOVED"], 1)

    def test_second_run_only_updates(self) -> None:
        self._run()
        summary, output = self._run()

        self.assertEqual(summary["CREATE"], 0)
        self.assertEqual(Page.objects.filter(route_name="route1").count(), 1)
        self.assertRegex(output, r"UPDATE.*route1")

    def test_error_pages_are_not_decorated(self) -> None:
        self._run()
        page = Page.objects.get(route_name="_page_internal_error_404")
        self.assertEqual(page.name, "Error 404")
        self.assertFalse(page.decorate)


@override_settings(ROOT_URLCONF="apps.cms.tests.urls_hybrid")
class IterRoutesTests(SimpleTestCase):
    def test_flattens_named_routes_with_namespaces(self) -> None:
        routes = {route.name: route for route in iter_routes()}

        self.assertEqual(routes["hello"].url, "/hello/")
        self.assertFalse(routes["hello"].has_params)
        self.assertTrue(routes["item"].has_params)
        self.assertEqual(routes["cms_api:page-list"].url, "/api/cms/pages/")
        self.assertTrue(routes["cms_api:page-detail"].has_params)
        self.assertIn("page_slug", routes)


@override_settings(ROOT_URLCONF="apps.cms.tests.urls_hybrid")
class UpdateRoutesCommandTests(TestCase):
    def test_command_creates_hybrid_pages(self) -> None:
        out = io.StringIO()
        call_command("cms_update_routes", stdout=out)

        output = out.getvalue()
        self.assertIn("Routes synchronised", output)
        self.assertRegex(output, r"CREATE.*hello.*/hello/")
        self.assertTrue(Page.objects.filter(route_name="hello").exists())
        self.assertFalse(Page.objects.filter(route_name="page_slug").exists())
        self.assertFalse(Page.objects.filter(route_name="ignored_view").exists())
        self.assertFalse(Page.objects.filter(route_name="cms_api:page-list").exists())
        self.assertTrue(Page.objects.filter(route_name="_page_internal_error_404").exists())

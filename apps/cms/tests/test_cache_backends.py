from __future__ import annotations

from django.core.cache import caches
from django.http import HttpResponse
from django.test import SimpleTestCase

from apps.cms.cache.backends import DjangoCacheBackend, NoopCache, RequestCache
from apps.cms.cache.element import CacheElement


def _filled(keys, body="<p>x</p>", ttl=None):
    return CacheElement(keys, ttl=ttl).with_value(HttpResponse(body))


class NoopCacheTests(SimpleTestCase):
    def test_never_hits(self) -> None:
        backend = NoopCache("noop")
        element = _filled({"block_id": 1})
        backend.set(element)

        self.assertFalse(backend.has(element))
        self.assertIsNone(backend.get(element))
        self.assertTrue(backend.invalidate(element))


class RequestCacheTests(SimpleTestCase):
    def test_set_then_get_rebuilds_the_response(self) -> None:
        backend = RequestCache("request")
        backend.set(_filled({"block_id": 1}, "<b>hi</b>"))

        element = CacheElement({"block_id": 1})
        self.assertTrue(backend.has(element))
        response = backend.get(element)
        self.assertEqual(response.content, b"<b>hi</b>")
        self.assertEqual(response.status_code, 200)

    def test_element_without_value_is_not_stored(self) -> None:
        backend = RequestCache("request")
        backend.set(CacheElement({"block_id": 1}))
        self.assertEqual(len(backend), 0)

    def test_invalidate_evicts_every_variant_of_a_block(self) -> None:
        backend = RequestCache("request")
        backend.set(_filled({"block_id": 1, "lang": "fr"}))
        backend.set(_filled({"block_id": 1, "lang": "en"}))
        backend.set(_filled({"block_id": 2, "lang": "fr"}))

        backend.invalidate(CacheElement({"block_id": 1}))

        self.assertEqual(len(backend), 1)
        self.assertTrue(backend.has(CacheElement({"block_id": 2, "lang": "fr"})))

    def test_flush_all(self) -> None:
        backend = RequestCache("request")
        backend.set(_filled({"block_id": 1}))
        backend.flush_all()
        self.assertEqual(len(backend), 0)


    def test_bounded_by_max_entries_least_recent_first(self) -> None:
        backend = RequestCache("request", max_entries=2)
        backend.set(_filled({"block_id": 1}))
        backend.set(_filled({"block_id": 2}))
        backend.get(CacheElement({"block_id": 1}))
        backend.set(_filled({"block_id": 3}))

        self.assertEqual(len(backend), 2)
        self.assertTrue(backend.has(CacheElement({"block_id": 1})))
        self.assertFalse(backend.has(CacheElement({"block_id": 2})))
        self.assertTrue(backend.has(CacheElement({"block_id": 3})))

    def test_default_bound(self) -> None:
        self.assertEqual(RequestCache("request").max_entries, RequestCache.default_max_entries)


class DjangoCacheBackendTests(SimpleTestCase):
    def setUp(self) -> None:
        caches["default"].clear()
        self.backend = DjangoCacheBackend("django", alias="default", default_ttl=60)

    def tearDown(self) -> None:
        caches["default"].clear()

    def test_roundtrip_keeps_status_and_content_type(self) -> None:
        response = HttpResponse("<i>cached</i>", status=200, content_type="text/html; charset=utf-8")
        self.backend.set(CacheElement({"block_id": 5}).with_value(response))

        cached = self.backend.get(CacheElement({"block_id": 5}))

        self.assertEqual(cached.content, b"<i>cached</i>")
        self.assertEqual(cached["Content-Type"], "text/html; charset=utf-8")

    def test_storage_key_is_namespaced(self) -> None:
        key = self.backend.storage_key(CacheElement({"block_id": 5}))
        self.assertTrue(key.startswith("cms:block:"))

    def test_invalidate_by_block_id_drops_all_variants(self) -> None:
        self.backend.set(_filled({"block_id": 5, "page_id": 1, "updated_at": "a"}))
        self.backend.set(_filled({"block_id": 6, "page_id": 1, "updated_at": "a"}))

        self.backend.invalidate(CacheElement({"block_id": 5}))

        self.assertFalse(self.backend.has(CacheElement({"block_id": 5, "page_id": 1, "updated_at": "a"})))
        self.assertTrue(self.backend.has(CacheElement({"block_id": 6, "page_id": 1, "updated_at": "a"})))

    def test_invalidate_exact_element_without_block_id(self) -> None:
        self.backend.set(_filled({"fragment": "menu"}))
        self.backend.invalidate(CacheElement({"fragment": "menu"}))
        self.assertFalse(self.backend.has(CacheElement({"fragment": "menu"})))

    def test_flush_all_orphans_everything(self) -> None:
        self.backend.set(_filled({"block_id": 5}))
        self.backend.set(_filled({"fragment": "menu"}))

        self.backend.flush_all()

        self.assertFalse(self.backend.has(CacheElement({"block_id": 5})))
        self.assertFalse(self.backend.has(CacheElement({"fragment": "menu"})))

    def test_element_ttl_wins_over_default(self) -> None:
        self.assertEqual(self.backend._ttl(CacheElement({"block_id": 1}, ttl=15)), 15)
        self.assertEqual(self.backend._ttl(CacheElement({"block_id": 1})), 60)

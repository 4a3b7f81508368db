from __future__ import annotations

from django.test import SimpleTestCase

from apps.cms.text import mustache_replace


class MustacheReplaceTests(SimpleTestCase):
    def test_replaces_known_placeholders(self) -> None:
        self.assertEqual(mustache_replace("Hello {{ name }}!", {"name": "Ana"}), "Hello Ana!")
        self.assertEqual(mustache_replace("{{a}}-{{  b  }}", {"a": 1, "b": 2}), "1-2")

    def test_unknown_placeholders_are_kept(self) -> None:
        self.assertEqual(mustache_replace("{{ missing }} {{ x }}", {"x": "y"}), "{{ missing }} y")

    def test_empty_value(self) -> None:
        self.assertEqual(mustache_replace("", {"x": 1}), "")
        self.assertEqual(mustache_replace(None, {"x": 1}), "")

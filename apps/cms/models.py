"""Database models for CMS sites, pages and blocks."""

from __future__ import annotations

from typing import Any, List, Optional

from django.db import models
from django.db.models import Q

from apps.cms.conf import CONTAINER_TYPE, PAGE_SLUG_ROUTE


class Site(models.Model):
    name = models.CharField(max_length=120)
    host = models.CharField(max_length=255, default="localhost")
    locale = models.CharField(max_length=12, blank=True, default="")
    is_default = models.BooleanField(default=False)
    enabled = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:
        return f"{self.name} ({self.host})"


class Page(models.Model):
    """
    A CMS page.

    Hybrid pages are bound to a Django route (``route_name`` is the view name)
    and decorate the view output; pure CMS pages use the ``page_slug`` route
    and are looked up by ``slug``.
    """

    site = models.ForeignKey(Site, related_name="pages", on_delete=models.CASCADE, blank=True, null=True)
    name = models.CharField(max_length=255)
    route_name = models.CharField(max_length=255, blank=True, default="", db_index=True)
    slug = models.SlugField(max_length=255, blank=True, default="", db_index=True)
    url = models.CharField(max_length=500, blank=True, default="")
    template_code = models.CharField(max_length=64, blank=True, default="")
    ttl = models.PositiveIntegerField(default=0)
    decorate = models.BooleanField(default=True)
    enabled = models.BooleanField(default=True)
    login_required = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Root blocks (containers), filled when the block tree is loaded.
    _root_blocks: Optional[List["Block"]] = None

    class Meta:
        ordering = ("site", "url", "id")
        constraints = [
            models.UniqueConstraint(
                fields=["site", "route_name"],
                condition=~Q(route_name="") & ~Q(route_name=PAGE_SLUG_ROUTE),
                name="unique_route_name_per_site",
            ),
            models.UniqueConstraint(
                fields=["site", "slug"],
                condition=~Q(slug=""),
                name="unique_slug_per_site",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} [{self.route_name or self.slug}]"

    @property
    def is_hybrid(self) -> bool:
        return bool(self.route_name) and self.route_name != PAGE_SLUG_ROUTE

    @property
    def root_blocks(self) -> List["Block"]:
        if self._root_blocks is None:
            return []
        return self._root_blocks

    def set_root_blocks(self, blocks: List["Block"]) -> None:
        self._root_blocks = list(blocks)

    def add_root_block(self, block: "Block") -> None:
        if self._root_blocks is None:
            self._root_blocks = []
        self._root_blocks.append(block)

    @property
    def blocks_loaded(self) -> bool:
        return self._root_blocks is not None


class Block(models.Model):
    page = models.ForeignKey(Page, related_name="blocks", on_delete=models.CASCADE)
    parent = models.ForeignKey(
        "self", related_name="children", on_delete=models.CASCADE, blank=True, null=True
    )
    type = models.CharField(max_length=64, db_index=True)
    settings = models.JSONField(default=dict, blank=True)
    position = models.PositiveIntegerField(default=1)
    enabled = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Ordered children, filled when the page block tree is loaded.
    _loaded_children: Optional[List["Block"]] = None

    class Meta:
        ordering = ("page", "position", "id")
        indexes = [
            models.Index(fields=["page", "parent"], name="cms_block_page_parent_idx"),
        ]

    def __str__(self) -> str:
        return f"Block({self.pk}, {self.type})"

    def get_setting(self, name: str, default: Any = None) -> Any:
        return (self.settings or {}).get(name, default)

    def set_setting(self, name: str, value: Any) -> None:
        data = dict(self.settings or {})
        data[name] = value
        self.settings = data

    @property
    def is_container(self) -> bool:
        return self.type == CONTAINER_TYPE

    @property
    def loaded_children(self) -> List["Block"]:
        if self._loaded_children is None:
            if self.pk is None:
                return []
            self._loaded_children = list(self.children.all().order_by("position", "id"))
        return self._loaded_children

    def set_loaded_children(self, children: List["Block"]) -> None:
        self._loaded_children = list(children)

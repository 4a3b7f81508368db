"""
Persistence seams consumed by the CMS manager.

The manager only depends on the ``PageStore`` / ``BlockStore`` protocols;
``DjangoPageStore`` / ``DjangoBlockStore`` are the ORM-backed defaults.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple

from django.db import transaction

from apps.cms.config import loader
from apps.cms.conf import CONTAINER_TYPE, PAGE_SLUG_ROUTE
from apps.cms.exceptions import NotFoundError
from apps.cms.models import Block, Page

_BLOCK_REF_RE = re.compile(r"^(?:cms-block-)?(\d+)$")


class PageStore(Protocol):
    def find_by_slug(self, slug: str, site=None) -> Optional[Page]: ...

    def find_by_route_name(self, route_name: str, site=None) -> Optional[Page]: ...

    def find_by_id(self, page_id: Any) -> Optional[Page]: ...

    def create(self, **attrs: Any) -> Page: ...

    def save(self, page: Page) -> Page: ...

    def get_default_template(self) -> Optional[str]: ...

    def get_hybrid_pages(self, site=None) -> List[Page]: ...

    def delete(self, page: Page) -> None: ...


class BlockStore(Protocol):
    def load_blocks_for_page(self, page: Page) -> List[Block]: ...

    def create_container(self, **attrs: Any) -> Block: ...

    def save(self, block: Block) -> Block: ...

    def find_by_id(self, block_id: Any) -> Optional[Block]: ...

    def save_positions(self, data: Mapping[str, Any]) -> int: ...


class DjangoPageStore:
    def _scoped(self, site=None):
        qs = Page.objects.all()
        if site is not None:
            qs = qs.filter(site=site)
        return qs

    def find_by_slug(self, slug: str, site=None) -> Optional[Page]:
        if not slug:
            return None
        return self._scoped(site).filter(slug=slug).first()

    def find_by_route_name(self, route_name: str, site=None) -> Optional[Page]:
        if not route_name:
            return None
        return self._scoped(site).filter(route_name=route_name).first()

    def find_by_id(self, page_id: Any) -> Optional[Page]:
        try:
            return Page.objects.filter(pk=int(page_id)).first()
        except (TypeError, ValueError):
            return None

    def create(self, **attrs: Any) -> Page:
        return Page(**attrs)

    def save(self, page: Page) -> Page:
        page.save()
        return page

    def get_default_template(self) -> Optional[str]:
        return loader.get_default_template()

    def get_hybrid_pages(self, site=None) -> List[Page]:
        qs = self._scoped(site).exclude(route_name="").exclude(route_name=PAGE_SLUG_ROUTE)
        return list(qs.order_by("route_name", "id"))

    def delete(self, page: Page) -> None:
        page.delete()


class DjangoBlockStore:
    def load_blocks_for_page(self, page: Page) -> List[Block]:
        """
        Load the whole block tree of ``page`` in one query.

        Children lists and the page's root blocks are filled in memory, in
        position order, so rendering never queries per block.
        """
        blocks = list(Block.objects.filter(page=page).order_by("position", "id"))
        by_parent: Dict[Optional[int], List[Block]] = {}
        for block in blocks:
            block.page = page
            by_parent.setdefault(block.parent_id, []).append(block)
        for block in blocks:
            block.set_loaded_children(by_parent.get(block.pk, []))
        page.set_root_blocks(by_parent.get(None, []))
        return blocks

    def create_container(self, **attrs: Any) -> Block:
        name = attrs.pop("name", "")
        settings = dict(attrs.pop("settings", None) or {})
        settings.setdefault("name", name)
        attrs.setdefault("type", CONTAINER_TYPE)
        block = Block(settings=settings, **attrs)
        block.set_loaded_children([])
        return block

    def save(self, block: Block) -> Block:
        block.save()
        return block

    def find_by_id(self, block_id: Any) -> Optional[Block]:
        try:
            return Block.objects.select_related("page").filter(pk=int(block_id)).first()
        except (TypeError, ValueError):
            return None

    def save_positions(self, data: Mapping[str, Any]) -> int:
        """
        Persist a block disposition.

        ``data`` is the nested layout posted by the page editor::

            {"cms-block-2": {"type": "core.container", "child": {
                "cms-block-4": {"type": "core.text", "child": {}}}}}

        Each block gets its 1-based sibling index as ``position`` and the
        enclosing block as ``parent``. Returns the number of blocks updated.
        """
        rows = list(_flatten_positions(data, None))
        if not rows:
            return 0
        ids = [row[0] for row in rows]
        found = Block.objects.in_bulk(ids)
        missing = [bid for bid in ids if bid not in found]
        if missing:
            raise NotFoundError(f"Unknown block id(s) in disposition: {missing}")

        with transaction.atomic():
            for block_id, parent_id, position in rows:
                Block.objects.filter(pk=block_id).update(parent_id=parent_id, position=position)
        return len(rows)


def _parse_block_ref(ref: Any) -> int:
    match = _BLOCK_REF_RE.match(str(ref).strip())
    if not match:
        raise ValueError(f"Invalid block reference '{ref}'")
    return int(match.group(1))


def _flatten_positions(data: Mapping[str, Any], parent_id: Optional[int]) -> Iterator[Tuple[int, Optional[int], int]]:
    for position, (ref, node) in enumerate((data or {}).items(), start=1):
        block_id = _parse_block_ref(ref)
        yield block_id, parent_id, position
        children = (node or {}).get("child") if isinstance(node, Mapping) else None
        if children:
            yield from _flatten_positions(children, block_id)

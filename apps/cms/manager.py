# apps/cms/manager.py
from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional
import logging

from django.http import HttpResponse
from django.utils.cache import patch_cache_control

from apps.cms import conf
from apps.cms.blocks.base import BaseBlockService
from apps.cms.cache.backends import BaseCacheBackend
from apps.cms.cache.element import CacheElement
from apps.cms.cache.invalidation import InvalidationReport, SimpleCacheInvalidation
from apps.cms.conf import ErrorPolicy, PAGE_SLUG_ROUTE
from apps.cms.config.loader import FALLBACK_TEMPLATE_PATH, get_template_path
from apps.cms.decorator import route_name_for
from apps.cms.exceptions import CmsError, ConfigurationError, NotFoundError, RenderError
from apps.cms.models import Block, Page
from apps.cms.registry import (
    BlockServiceRegistry,
    CacheBackendRegistry,
    get_block_services,
    get_cache_backends,
)
from apps.cms.stores import BlockStore, DjangoBlockStore, DjangoPageStore, PageStore
from apps.cms.templating import DjangoTemplating, default_templating

log = logging.getLogger("cms.manager")


class CmsManager:
    """
    Resolves the page of a request (CMS page or decorated view), finds or
    creates its containers and renders blocks through their services and
    cache backends.

    One instance per request: ``route_pages``, ``blocks`` and the current
    page are request state and are never evicted. Use
    ``apps.cms.context.get_manager(request)`` rather than building one by hand.
    """

    def __init__(
        self,
        page_store: Optional[PageStore] = None,
        block_store: Optional[BlockStore] = None,
        *,
        block_services: Optional[BlockServiceRegistry] = None,
        cache_backends: Optional[CacheBackendRegistry] = None,
        invalidation: Optional[SimpleCacheInvalidation] = None,
        templating: Optional[DjangoTemplating] = None,
        policy: Optional[ErrorPolicy] = None,
        site=None,
        request=None,
    ) -> None:
        self.page_store = page_store or DjangoPageStore()
        self.block_store = block_store or DjangoBlockStore()
        self.block_services = block_services if block_services is not None else get_block_services()
        self.cache_backends = cache_backends if cache_backends is not None else get_cache_backends()
        self.invalidation = invalidation or SimpleCacheInvalidation()
        self.templating = templating or default_templating
        self.policy = policy or conf.error_policy()
        self.site = site
        self.request = request

        self.route_pages: Dict[str, Page] = {}
        self.blocks: Dict[Any, Block] = {}
        self.current_page: Optional[Page] = None

    @property
    def request_id(self) -> str:
        return getattr(self.request, "request_id", "") or ""

    # ------------------------------------------------------------------
    # Page resolution
    # ------------------------------------------------------------------

    def get_page(self, ref: Any = None) -> Page:
        """
        Resolve ``ref`` to a loaded page.

        ``None`` -> current page, ``Page`` -> itself, ``str`` -> slug,
        ``int`` -> id. Raises ``NotFoundError`` when nothing resolves.
        """
        if isinstance(ref, Page):
            return ref

        if ref is None:
            page = self.current_page
            if page is None:
                raise NotFoundError("No current page defined for this request")
            return page

        if isinstance(ref, bool):
            raise NotFoundError(f"Unable to retrieve the page from {ref!r}")
        if isinstance(ref, int):
            page = self.get_page_by_id(ref)
        elif isinstance(ref, str):
            page = self.get_page_by_slug(ref)
        else:
            raise NotFoundError(f"Unable to retrieve the page from {type(ref).__name__}")

        if page is None:
            raise NotFoundError(f"Unable to retrieve the page: {ref!r}")
        return page

    def get_page_by_route_name(self, route_name: str, create: bool = True) -> Page:
        if route_name not in self.route_pages:
            page = self.page_store.find_by_route_name(route_name, site=self.site)

            if page is None and not create:
                raise NotFoundError(f"Unable to find the page: {route_name}")
            if page is None:
                page = self.create_page(route_name)

            self.load_blocks(page)
            self.route_pages[route_name] = page

        return self.route_pages[route_name]

    def get_page_by_slug(self, slug: str) -> Optional[Page]:
        page = self.page_store.find_by_slug(slug, site=self.site)
        if page is not None:
            self.load_blocks(page)
        return page

    def get_page_by_id(self, page_id: Any) -> Optional[Page]:
        page = self.page_store.find_by_id(page_id)
        if page is not None:
            self.load_blocks(page)
        return page

    def create_page(self, route_name: str) -> Page:
        template = self.get_default_template()
        if not template:
            raise ConfigurationError("No default template defined")

        page = self.page_store.create(
            template_code=template,
            enabled=True,
            route_name=route_name,
            name=route_name,
            login_required=False,
            site=self.site,
        )
        self.page_store.save(page)
        log.info("[cms::create_page] route=%s page.id=%s template=%s", route_name, page.pk, template)
        return page

    def get_default_template(self) -> Optional[str]:
        return self.page_store.get_default_template()

    def define_current_page(self, request) -> Optional[Page]:
        """
        Current page of ``request``: pure CMS routes (``page_slug``) resolve
        by slug elsewhere and yield ``None``; other routes are hybrid pages.
        Resolution failures are logged, never raised.
        """
        if self.current_page is not None:
            return self.current_page

        route_name = route_name_for(request)
        if route_name == PAGE_SLUG_ROUTE:
            return None
        if not route_name:
            log.debug("[cms::define_current_page] request has no route name rid=%s", self.request_id)
            return None

        try:
            self.current_page = self.get_page_by_route_name(route_name)
        except CmsError as exc:
            log.critical(
                "[cms::define_current_page] no page available for route: %s (%s) rid=%s",
                route_name,
                exc,
                self.request_id,
            )
            return None

        return self.current_page

    def get_current_page(self) -> Optional[Page]:
        return self.current_page

    def set_current_page(self, page: Optional[Page]) -> None:
        self.current_page = page

    def set_route_pages(self, route_pages: Mapping[str, Page]) -> None:
        self.route_pages = dict(route_pages)

    def get_route_pages(self) -> Dict[str, Page]:
        return self.route_pages

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def load_blocks(self, page: Page) -> List[Block]:
        blocks = self.block_store.load_blocks_for_page(page)
        for block in blocks:
            self.blocks[block.pk] = block
        return blocks

    def get_block(self, block_id: Any) -> Optional[Block]:
        if block_id not in self.blocks:
            block = self.block_store.find_by_id(block_id)
            if block is None:
                return None
            self.blocks[block_id] = block
        return self.blocks[block_id]

    def save_position(self, data: Mapping[str, Any]) -> int:
        return self.block_store.save_positions(data)

    def find_container(self, name: str, page: Page, parent_container: Optional[Block] = None) -> Block:
        """
        Container named ``name`` on ``page``.

        A given parent container is the container. Otherwise the first root
        block whose ``name`` setting matches wins; when none exists a new
        enabled container is created and persisted.
        """
        if parent_container is not None:
            return parent_container

        if not page.blocks_loaded:
            self.load_blocks(page)

        for block in page.root_blocks:
            if block.get_setting("name") == name:
                return block

        container = self.block_store.create_container(
            enabled=True,
            page=page,
            name=name,
            position=1,
        )
        self.block_store.save(container)
        page.add_root_block(container)
        self.blocks[container.pk] = container
        log.info("[cms::find_container] created container name=%s page.id=%s block.id=%s", name, page.pk, container.pk)
        return container

    def get_block_service(self, block: Block) -> Optional[BaseBlockService]:
        service = self.block_services.get(block.type)
        if service is None:
            message = f"The block service `{block.type}` referenced in the block `{block.pk}` does not exist"
            if self.policy is ErrorPolicy.STRICT:
                raise ConfigurationError(message)
            log.critical("[cms::get_block_service] block.id=%s - service:%s does not exist", block.pk, block.type)
            return None
        return service

    def get_cache_service(self, block: Block) -> BaseCacheBackend:
        return self.cache_backends.get(block.type)

    def get_cache_services(self) -> List[BaseCacheBackend]:
        return self.cache_backends.backends()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_block(self, block: Block, page: Page, use_cache: bool = True) -> HttpResponse:
        log.info("[cms::render_block] block.id=%s, block.type=%s rid=%s", block.pk, block.type, self.request_id)

        try:
            service = self.get_block_service(block)
            if service is None:
                return HttpResponse()

            backend = self.get_cache_service(block)
            element = service.get_cache_element(block)

            if use_cache and backend.has(element):
                cached = backend.get(element)
                if cached is not None:
                    log.debug("[cms::render_block] cache hit block.id=%s backend=%s", block.pk, backend.name)
                    return cached

            try:
                response = service.execute(block, page, backend.create_response(element), manager=self)
            except CmsError:
                raise
            except Exception as exc:
                raise RenderError(
                    f"Block {block.pk} ({block.type}) failed: {exc}",
                    block_id=block.pk,
                    block_type=block.type,
                ) from exc

            if use_cache:
                backend.set(element.with_value(response))

            return response
        except Exception as exc:
            log.critical(
                "[cms::render_block] block.id=%s - error while rendering block - %s rid=%s",
                block.pk,
                exc,
                self.request_id,
                exc_info=True,
            )
            if self.policy is ErrorPolicy.STRICT:
                raise
            return HttpResponse()

    def render_container(self, name: str, page: Any = None, parent_container: Optional[Block] = None) -> str:
        """Render a slot and return its body only, for embedding in a template."""
        try:
            page = self.get_page(page)
        except NotFoundError:
            return self.templating.render("cms/no_page_available.html", {"name": name}, request=self.request)

        container = self.find_container(name, page, parent_container)
        response = self.render_block(container, page)
        return response.content.decode(response.charset or "utf-8")

    def get_template_path(self) -> str:
        current = self.current_page
        if current is None:
            return FALLBACK_TEMPLATE_PATH
        return get_template_path(current.template_code)

    def render_page(
        self,
        page: Page,
        params: Optional[Dict[str, Any]] = None,
        response: Optional[HttpResponse] = None,
    ) -> HttpResponse:
        """
        Render ``page`` with its template (the current page's template, or
        the default layout when no current page is set). The given response
        is reused, so status and headers survive. The page TTL is applied as
        shared cache max-age.
        """
        params = dict(params or {})
        params["page"] = page
        params["manager"] = self

        response = self.templating.render_response(self.get_template_path(), params, response, request=self.request)
        patch_cache_control(response, s_maxage=int(page.ttl or 0))
        return response

    # ------------------------------------------------------------------
    # Cache invalidation
    # ------------------------------------------------------------------

    def invalidate(self, element: CacheElement) -> InvalidationReport:
        return self.invalidation.invalidate(self.get_cache_services(), element)

    def invalidate_block(self, block: Block) -> InvalidationReport:
        return self.invalidate(CacheElement({"block_id": block.pk}))

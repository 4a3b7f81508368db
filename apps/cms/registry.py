# apps/cms/registry.py
from __future__ import annotations
from functools import lru_cache
from typing import Dict, List, Optional
import logging

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.module_loading import import_string

from apps.cms.blocks.base import BaseBlockService
from apps.cms.cache.backends import BaseCacheBackend
from apps.cms.exceptions import ConfigurationError

log = logging.getLogger("cms.manager")

FALLBACK_CACHE_KEY = "*"


class BlockServiceRegistry:
    """Block type -> block service."""

    def __init__(self) -> None:
        self._services: Dict[str, BaseBlockService] = {}

    def register(self, block_type: str, service: BaseBlockService) -> None:
        if not isinstance(service, BaseBlockService):
            raise ConfigurationError(
                f"Block service for '{block_type}' must extend BaseBlockService (got {type(service).__name__})"
            )
        self._services[block_type] = service

    def has(self, block_type: str) -> bool:
        return block_type in self._services

    def get(self, block_type: str) -> Optional[BaseBlockService]:
        return self._services.get(block_type)

    def types(self) -> List[str]:
        return list(self._services.keys())

    def __contains__(self, block_type: str) -> bool:
        return self.has(block_type)


class CacheBackendRegistry:
    """Block type -> cache backend, at most one backend per type."""

    def __init__(self) -> None:
        self._by_type: Dict[str, BaseCacheBackend] = {}

    def register(self, block_type: str, backend: BaseCacheBackend, *, override: bool = False) -> None:
        if not isinstance(backend, BaseCacheBackend):
            raise ConfigurationError(
                f"Cache backend for '{block_type}' must extend BaseCacheBackend (got {type(backend).__name__})"
            )
        if block_type in self._by_type and not override:
            raise ConfigurationError(f"A cache backend is already registered for block type '{block_type}'")
        self._by_type[block_type] = backend

    def has(self, block_type: str) -> bool:
        return block_type in self._by_type

    def get(self, block_type: str) -> BaseCacheBackend:
        try:
            return self._by_type[block_type]
        except KeyError:
            raise ConfigurationError(f"No cache backend registered for block type '{block_type}'") from None

    def backends(self) -> List[BaseCacheBackend]:
        """Distinct backends, in registration order."""
        seen: set[int] = set()
        ordered: List[BaseCacheBackend] = []
        for backend in self._by_type.values():
            if id(backend) not in seen:
                seen.add(id(backend))
                ordered.append(backend)
        return ordered

    def types(self) -> List[str]:
        return list(self._by_type.keys())


# ---------------------------
# Construction depuis settings
# ---------------------------

def build_block_services(config: Optional[Dict[str, str]] = None) -> BlockServiceRegistry:
    registry = BlockServiceRegistry()
    config = config if config is not None else getattr(settings, "CMS_BLOCK_SERVICES", {})
    for block_type, dotted in (config or {}).items():
        try:
            service_cls = import_string(dotted)
        except ImportError as exc:
            raise ConfigurationError(f"Cannot import block service '{dotted}' for '{block_type}'") from exc
        registry.register(block_type, service_cls(block_type))
    return registry


def _build_backend(name: str, options: Dict) -> BaseCacheBackend:
    dotted = (options or {}).get("BACKEND")
    if not dotted:
        raise ConfigurationError(f"CMS_CACHE_BACKENDS['{name}'] has no BACKEND")
    try:
        backend_cls = import_string(dotted)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import cache backend '{dotted}' for '{name}'") from exc
    return backend_cls(name, **dict(options.get("OPTIONS") or {}))


def build_cache_backends(
    backends_config: Optional[Dict[str, Dict]] = None,
    block_caches: Optional[Dict[str, str]] = None,
    block_types: Optional[List[str]] = None,
) -> CacheBackendRegistry:
    backends_config = backends_config if backends_config is not None else getattr(settings, "CMS_CACHE_BACKENDS", {})
    block_caches = dict(block_caches if block_caches is not None else getattr(settings, "CMS_BLOCK_CACHES", {}))
    if block_types is None:
        block_types = list(getattr(settings, "CMS_BLOCK_SERVICES", {}).keys())

    instances = {name: _build_backend(name, options) for name, options in (backends_config or {}).items()}

    def _lookup(backend_name: str, block_type: str) -> BaseCacheBackend:
        try:
            return instances[backend_name]
        except KeyError:
            raise ConfigurationError(
                f"Block type '{block_type}' references unknown cache backend '{backend_name}'"
            ) from None

    registry = CacheBackendRegistry()
    fallback = block_caches.pop(FALLBACK_CACHE_KEY, None)

    for block_type, backend_name in block_caches.items():
        registry.register(block_type, _lookup(backend_name, block_type))

    if fallback:
        for block_type in block_types:
            if not registry.has(block_type):
                registry.register(block_type, _lookup(fallback, block_type))

    return registry


@lru_cache(maxsize=1)
def get_block_services() -> BlockServiceRegistry:
    registry = build_block_services()
    log.info("CMS block services loaded: %s", registry.types())
    return registry


@lru_cache(maxsize=1)
def get_cache_backends() -> CacheBackendRegistry:
    registry = build_cache_backends()
    log.info("CMS cache backends loaded: %s", registry.types())
    return registry


def reset_registries() -> None:
    get_block_services.cache_clear()
    get_cache_backends.cache_clear()


@receiver(setting_changed)
def _reset_on_setting_changed(sender, setting, **kwargs):
    if setting in {"CMS_BLOCK_SERVICES", "CMS_CACHE_BACKENDS", "CMS_BLOCK_CACHES"}:
        reset_registries()
    if setting == "CMS_CONFIG_PATH":
        from apps.cms.config.loader import clear_config_cache

        clear_config_cache()

"""
Backends de cache pour le rendu des blocs.

Chaque backend stocke la réponse d'un bloc sous l'identité d'un CacheElement
et décide lui-même, à l'invalidation, quelles entrées correspondent.
Les réponses sont stockées sous forme de payload (contenu/statut/content-type)
et reconstruites à la lecture.
"""

from __future__ import annotations
from collections import OrderedDict
from typing import Any, Dict, Optional
import logging
import threading

from django.core.cache import caches
from django.http import HttpResponse

from apps.cms import conf
from apps.cms.cache.element import CacheElement

log = logging.getLogger("cms.cache")


def dump_response(response: HttpResponse) -> Dict[str, Any]:
    charset = getattr(response, "charset", None) or "utf-8"
    return {
        "content": response.content.decode(charset, errors="replace"),
        "status": int(getattr(response, "status_code", 200) or 200),
        "content_type": response.get("Content-Type", "text/html; charset=utf-8"),
    }


def load_response(payload: Dict[str, Any]) -> HttpResponse:
    return HttpResponse(
        payload.get("content", ""),
        status=int(payload.get("status", 200) or 200),
        content_type=payload.get("content_type") or "text/html; charset=utf-8",
    )


class BaseCacheBackend:
    """Contrat commun à tous les backends de cache de blocs."""

    def __init__(self, name: str = "", **options: Any) -> None:
        self.name = name or self.__class__.__name__
        self.options = options

    def has(self, element: CacheElement) -> bool:
        raise NotImplementedError

    def get(self, element: CacheElement) -> Optional[HttpResponse]:
        raise NotImplementedError

    def set(self, element: CacheElement) -> None:
        raise NotImplementedError

    def create_response(self, element: CacheElement) -> HttpResponse:
        return HttpResponse()

    def invalidate(self, element: CacheElement) -> bool:
        raise NotImplementedError

    def flush_all(self) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:  # pragma: no cover - aide au debug
        return f"<{self.__class__.__name__} name={self.name!r}>"


class NoopCache(BaseCacheBackend):
    """Ne stocke rien: chaque lecture est un miss."""

    def has(self, element: CacheElement) -> bool:
        return False

    def get(self, element: CacheElement) -> Optional[HttpResponse]:
        return None

    def set(self, element: CacheElement) -> None:
        return None

    def invalidate(self, element: CacheElement) -> bool:
        return True

    def flush_all(self) -> bool:
        return True


class RequestCache(BaseCacheBackend):
    """
    Backend mémoire local au processus, borné à ``max_entries`` (LRU).

    L'instance vit dans le registre partagé par toutes les requêtes du
    processus: l'accès est protégé par un verrou. L'invalidation supprime
    toute entrée dont les clés contiennent toutes celles de l'élément
    invalidé, donc ``CacheElement({"block_id": 3})`` retire toutes les
    variantes du bloc 3.
    """

    default_max_entries = 1000

    def __init__(self, name: str = "", *, max_entries: Optional[int] = None, **options: Any) -> None:
        super().__init__(name, **options)
        self.max_entries = max(1, int(max_entries or self.default_max_entries))
        self._store: "OrderedDict[str, tuple[CacheElement, Dict[str, Any]]]" = OrderedDict()
        self._lock = threading.Lock()

    def has(self, element: CacheElement) -> bool:
        with self._lock:
            return element.key in self._store

    def get(self, element: CacheElement) -> Optional[HttpResponse]:
        with self._lock:
            entry = self._store.get(element.key)
            if entry is None:
                return None
            self._store.move_to_end(element.key)
        return load_response(entry[1])

    def set(self, element: CacheElement) -> None:
        if element.value is None:
            return
        payload = dump_response(element.value)
        with self._lock:
            self._store[element.key] = (element, payload)
            self._store.move_to_end(element.key)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def invalidate(self, element: CacheElement) -> bool:
        with self._lock:
            doomed = [key for key, (stored, _) in self._store.items() if stored.matches(element)]
            for key in doomed:
                del self._store[key]
        log.debug("RequestCache invalidate keys=%s evicted=%d", element.keys, len(doomed))
        return True

    def flush_all(self) -> bool:
        with self._lock:
            self._store.clear()
        return True

    def __len__(self) -> int:
        return len(self._store)


class DjangoCacheBackend(BaseCacheBackend):
    """
    Stocke les réponses de blocs dans un alias de cache Django (Redis en prod).

    Les clés sont préfixées et salées par deux compteurs de génération: un
    global (incrémenté par ``flush_all``) et un par id de bloc (incrémenté
    quand un élément nommant ce bloc est invalidé). Incrémenter un compteur
    rend orphelines les entrées de la génération précédente; le TTL du cache
    les récupère.
    """

    namespace = "cms:block:"
    gen_all_key = "cms:gen:all"

    def __init__(self, name: str = "", *, alias: Optional[str] = None, default_ttl: Optional[int] = None, **options: Any) -> None:
        super().__init__(name, **options)
        self.alias = alias or conf.cache_alias()
        self.default_ttl = default_ttl

    @property
    def cache(self):
        return caches[self.alias]

    # --- interne ---

    def _ttl(self, element: CacheElement) -> int:
        ttl = element.ttl if element.ttl else (self.default_ttl or conf.default_cache_ttl())
        try:
            return max(1, int(ttl))
        except (TypeError, ValueError):
            return conf.default_cache_ttl()

    @staticmethod
    def _block_gen_key(block_id: Any) -> str:
        return f"cms:gen:block:{block_id}"

    def _generation(self, key: str) -> int:
        value = self.cache.get(key)
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            return 0

    def _bump(self, key: str) -> None:
        self.cache.add(key, 0, None)
        try:
            self.cache.incr(key)
        except ValueError:
            # la clé a expiré entre add() et incr()
            self.cache.set(key, 1, None)

    def storage_key(self, element: CacheElement) -> str:
        parts = [str(self._generation(self.gen_all_key))]
        block_id = element.get("block_id")
        if block_id is not None:
            parts.append(str(self._generation(self._block_gen_key(block_id))))
        return f"{self.namespace}{'.'.join(parts)}:{element.key}"

    # --- API ---

    def has(self, element: CacheElement) -> bool:
        return self.cache.get(self.storage_key(element)) is not None

    def get(self, element: CacheElement) -> Optional[HttpResponse]:
        payload = self.cache.get(self.storage_key(element))
        if payload is None:
            return None
        return load_response(payload)

    def set(self, element: CacheElement) -> None:
        if element.value is None:
            return
        self.cache.set(self.storage_key(element), dump_response(element.value), self._ttl(element))

    def invalidate(self, element: CacheElement) -> bool:
        self.cache.delete(self.storage_key(element))
        block_id = element.get("block_id")
        if block_id is not None:
            self._bump(self._block_gen_key(block_id))
        log.debug("DjangoCacheBackend invalidate alias=%s keys=%s", self.alias, element.keys)
        return True

    def flush_all(self) -> bool:
        self._bump(self.gen_all_key)
        return True

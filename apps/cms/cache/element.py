# apps/cms/cache/element.py
from __future__ import annotations
from hashlib import sha256
from typing import Any, Dict, Mapping, Optional
import json


def _json_stable(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


class CacheElement:
    """
    Identity of one cached block rendering.

    The identity is the ``keys`` mapping (block id, page id, revision and any
    context the block service considers relevant). ``key`` is a stable digest
    of it: two elements with the same keys refer to the same artifact in every
    backend. ``value`` holds the rendered response once the block executed.
    """

    __slots__ = ("_keys", "_ttl", "_value", "_key")

    def __init__(self, keys: Mapping[str, Any], ttl: Optional[int] = None, value: Any = None) -> None:
        self._keys: Dict[str, Any] = {str(k): v for k, v in dict(keys or {}).items()}
        self._ttl = ttl
        self._value = value
        self._key = sha256(_json_stable(self._keys).encode("utf-8")).hexdigest()

    @property
    def keys(self) -> Dict[str, Any]:
        return dict(self._keys)

    @property
    def key(self) -> str:
        return self._key

    @property
    def ttl(self) -> Optional[int]:
        return self._ttl

    @property
    def value(self) -> Any:
        return self._value

    def get(self, name: str, default: Any = None) -> Any:
        return self._keys.get(name, default)

    def with_value(self, value: Any) -> "CacheElement":
        return CacheElement(self._keys, ttl=self._ttl, value=value)

    def matches(self, other: "CacheElement") -> bool:
        """True when every key of ``other`` is present here with the same value."""
        return all(k in self._keys and self._keys[k] == v for k, v in other._keys.items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheElement):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"CacheElement({self._key[:12]}, keys={self._keys!r})"

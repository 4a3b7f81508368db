# apps/cms/config/loader.py
from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional
import re

import yaml

from django.conf import settings

FALLBACK_TEMPLATE_PATH = "cms/layout.html"

_EMPTY_DECORATOR = {
    "ignore_routes": [],
    "ignore_route_patterns": [],
    "ignore_uri_patterns": [],
}

# --------- Normalisation ---------

def _normalize_templates(conf: dict) -> dict:
    """
    Accepte:
      - dict: {"templates": {"default": {"name": "...", "path": "..."}}}
      - dict court: {"templates": {"default": "cms/layout.html"}}
    Retourne toujours {"templates": {code: {"code", "name", "path"}}}
    """
    templates = conf.get("templates") or {}
    if not isinstance(templates, dict):
        raise ValueError(f"La section 'templates' doit être un dict (reçu {type(templates)}).")

    out: Dict[str, dict] = {}
    for code, entry in templates.items():
        code = str(code)
        if isinstance(entry, str):
            entry = {"path": entry}
        if not isinstance(entry, dict):
            raise ValueError(f"templates.{code}: type inattendu ({type(entry)}).")
        path = (entry.get("path") or "").strip()
        if not path:
            raise ValueError(f"templates.{code}: 'path' manquant.")
        out[code] = {"code": code, "name": entry.get("name") or code, "path": path}

    conf["templates"] = out

    default = conf.get("default_template")
    if default is not None:
        default = str(default)
        if default not in out:
            raise ValueError(f"default_template '{default}' absent de la section 'templates'.")
    conf["default_template"] = default
    return conf


def _normalize_patterns(values: Any, *, where: str) -> List[str]:
    if not values:
        return []
    if not isinstance(values, list):
        raise ValueError(f"{where}: liste attendue (reçu {type(values)}).")
    out: List[str] = []
    for i, raw in enumerate(values):
        pattern = str(raw)
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ValueError(f"{where}[{i}]: expression invalide '{pattern}' ({exc}).") from exc
        out.append(pattern)
    return out


def _normalize_decorator(conf: dict) -> dict:
    deco = conf.get("decorator") or {}
    if not isinstance(deco, dict):
        raise ValueError(f"La section 'decorator' doit être un dict (reçu {type(deco)}).")
    routes = deco.get("ignore_routes") or []
    if not isinstance(routes, list):
        raise ValueError("decorator.ignore_routes: liste attendue.")
    conf["decorator"] = {
        "ignore_routes": [str(r) for r in routes],
        "ignore_route_patterns": _normalize_patterns(
            deco.get("ignore_route_patterns"), where="decorator.ignore_route_patterns"
        ),
        "ignore_uri_patterns": _normalize_patterns(
            deco.get("ignore_uri_patterns"), where="decorator.ignore_uri_patterns"
        ),
    }
    return conf


def _normalize_http_errors(conf: dict) -> dict:
    errors = conf.get("http_errors") or {}
    if not isinstance(errors, dict):
        raise ValueError(f"La section 'http_errors' doit être un dict (reçu {type(errors)}).")
    out: Dict[int, str] = {}
    for code, route_name in errors.items():
        try:
            status = int(code)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"http_errors: code HTTP invalide '{code}'.") from exc
        if not route_name:
            raise ValueError(f"http_errors.{status}: nom de route manquant.")
        out[status] = str(route_name)
    conf["http_errors"] = out
    return conf


def _normalize_config(conf: dict) -> dict:
    conf = _normalize_templates(conf)
    conf = _normalize_decorator(conf)
    conf = _normalize_http_errors(conf)
    return conf


# --------- Chargement + cache ---------

def _config_path() -> Path:
    return Path(getattr(settings, "CMS_CONFIG_PATH", Path(settings.BASE_DIR) / "configs" / "cms" / "cms.yml"))


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return data if isinstance(data, dict) else {}


def _sentinel(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return 0.0


@lru_cache(maxsize=4)
def _load_config_cached(path: str, sentinel: float) -> Dict[str, Any]:
    # sentinel force l'invalidation LRU quand le fichier change.
    cfg: Dict[str, Any] = {
        "templates": {},
        "default_template": None,
        "decorator": dict(_EMPTY_DECORATOR),
        "http_errors": {},
    }
    cfg.update(_read_yaml(Path(path)))
    return _normalize_config(cfg)


def load_config() -> Dict[str, Any]:
    path = _config_path()
    return _load_config_cached(str(path), _sentinel(path))


def clear_config_cache() -> None:
    """Force le rechargement (utile en tests et scripts)."""
    _load_config_cached.cache_clear()


# --------- Helpers lecture ---------

def get_templates() -> Dict[str, dict]:
    return load_config().get("templates", {})


def get_template(code: Optional[str]) -> Optional[dict]:
    if not code:
        return None
    return get_templates().get(code)


def get_template_path(code: Optional[str]) -> str:
    tpl = get_template(code)
    return tpl["path"] if tpl else FALLBACK_TEMPLATE_PATH


def get_default_template() -> Optional[str]:
    return load_config().get("default_template")


def get_decorator_rules() -> Dict[str, List[str]]:
    return load_config().get("decorator", dict(_EMPTY_DECORATOR))


def get_http_errors() -> Dict[int, str]:
    return load_config().get("http_errors", {})

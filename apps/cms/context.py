"""Per-request access to the CMS manager."""

from __future__ import annotations

from apps.cms.manager import CmsManager

_ATTR = "_cms_manager"


def get_manager(request) -> CmsManager:
    """
    Manager bound to ``request``, created on first access.

    Its page and block caches live and die with the request.
    """
    manager = getattr(request, _ATTR, None)
    if manager is None:
        manager = CmsManager(request=request)
        setattr(request, _ATTR, manager)
    return manager


def has_manager(request) -> bool:
    return getattr(request, _ATTR, None) is not None

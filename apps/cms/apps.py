from __future__ import annotations

from django.apps import AppConfig


class CmsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.cms"
    label = "cms"
    verbose_name = "CMS pages & blocks"

    def ready(self) -> None:
        from . import registry, signals  # noqa: F401

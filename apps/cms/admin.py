"""Admin configuration for CMS sites, pages and blocks."""

from __future__ import annotations

from django.contrib import admin, messages

from . import models
from .context import get_manager


@admin.register(models.Site)
class SiteAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "host", "locale", "is_default", "enabled")
    list_filter = ("enabled", "is_default")
    search_fields = ("name", "host")


class BlockInline(admin.TabularInline):
    model = models.Block
    fk_name = "page"
    extra = 0
    fields = ("type", "parent", "position", "enabled", "settings")


@admin.register(models.Page)
class PageAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "route_name", "slug", "url", "template_code", "ttl", "decorate", "enabled", "site")
    list_filter = ("enabled", "decorate", "login_required", "site")
    search_fields = ("name", "route_name", "slug", "url")
    inlines = [BlockInline]
    actions = ["invalidate_blocks"]

    def get_changeform_initial_data(self, request):
        initial = super().get_changeform_initial_data(request)
        url = initial.get("url")
        if url and not initial.get("slug"):
            initial["slug"] = url.strip("/").split("/")[-1]
        return initial

    @admin.action(description="Invalidate cached blocks")
    def invalidate_blocks(self, request, queryset):
        manager = get_manager(request)
        failed = 0
        for block in models.Block.objects.filter(page__in=queryset):
            if not manager.invalidate_block(block).ok:
                failed += 1
        if failed:
            self.message_user(request, f"{failed} block(s) could not be invalidated everywhere.", messages.WARNING)
        else:
            self.message_user(request, "Block caches invalidated.", messages.SUCCESS)


@admin.register(models.Block)
class BlockAdmin(admin.ModelAdmin):
    list_display = ("id", "page", "type", "parent", "position", "enabled", "updated_at")
    list_filter = ("type", "enabled")
    search_fields = ("page__name", "type")
    raw_id_fields = ("page", "parent")

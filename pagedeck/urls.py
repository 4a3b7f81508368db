"""
URL configuration for the pagedeck project.

The catch-all CMS route (``page_slug``) is included last so framework routes
always win; anything left over is looked up as a CMS page slug.
"""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/cms/", include(("apps.cms.api.urls", "cms_api"), namespace="cms_api")),
]

urlpatterns += [
    path("", include("apps.cms.urls")),
]

from django.urls import path, re_path

from apps.cms.conf import PAGE_SLUG_ROUTE
from .views import CmsPageView, healthz

# The catch-all must stay last: every path not claimed by a view is a CMS slug.
urlpatterns = [
    path("_cms/healthz/", healthz, name="cms_healthz"),
    re_path(r"^(?P<path>.*)$", CmsPageView.as_view(), name=PAGE_SLUG_ROUTE),
]

__all__ = ["urlpatterns"]

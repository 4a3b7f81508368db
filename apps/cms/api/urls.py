"""URL patterns for the CMS read API."""
from django.urls import path

from .views import PageBlocksView, PageDetailView, PageListView

urlpatterns = [
    path("pages/", PageListView.as_view(), name="page-list"),
    path("pages/<int:pk>/", PageDetailView.as_view(), name="page-detail"),
    path("pages/<int:pk>/blocks/", PageBlocksView.as_view(), name="page-blocks"),
]

__all__ = ["urlpatterns"]

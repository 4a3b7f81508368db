"""Read-only endpoints exposing CMS pages and their block trees."""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cms.models import Page
from apps.cms.stores import DjangoBlockStore

from .serializers import BlockTreeSerializer, PageSerializer

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class PageListView(APIView):
    """List pages, optionally filtered by ``enabled``, ``site`` (id) and ``route_name``."""

    def get(self, request, *args, **kwargs) -> Response:
        qs = Page.objects.select_related("site").all()

        enabled = (request.query_params.get("enabled") or "").strip().lower()
        if enabled:
            if enabled in _TRUE:
                qs = qs.filter(enabled=True)
            elif enabled in _FALSE:
                qs = qs.filter(enabled=False)
            else:
                return Response({"detail": "Invalid enabled flag."}, status=status.HTTP_400_BAD_REQUEST)

        site = request.query_params.get("site")
        if site:
            if not site.isdigit():
                return Response({"detail": "site must be an id."}, status=status.HTTP_400_BAD_REQUEST)
            qs = qs.filter(site_id=int(site))

        route_name = request.query_params.get("route_name")
        if route_name:
            qs = qs.filter(route_name=route_name)

        data = PageSerializer(qs, many=True).data
        return Response({"count": len(data), "results": data})


class PageDetailView(APIView):
    def get(self, request, pk: int, *args, **kwargs) -> Response:
        page = get_object_or_404(Page.objects.select_related("site"), pk=pk)
        return Response(PageSerializer(page).data)


class PageBlocksView(APIView):
    """Block tree of a page, root containers first, children nested."""

    def get(self, request, pk: int, *args, **kwargs) -> Response:
        page = get_object_or_404(Page, pk=pk)
        DjangoBlockStore().load_blocks_for_page(page)
        return Response({
            "page_id": page.pk,
            "blocks": BlockTreeSerializer(page.root_blocks, many=True).data,
        })

"""Django template glue used by the manager and the block services."""

from __future__ import annotations

from typing import Any, Dict, Optional

from django.http import HttpResponse
from django.template.loader import render_to_string


class DjangoTemplating:
    def render(self, template_name: str, params: Optional[Dict[str, Any]] = None, *, request=None) -> str:
        return render_to_string(template_name, params or {}, request=request)

    def render_response(
        self,
        template_name: str,
        params: Optional[Dict[str, Any]] = None,
        response: Optional[HttpResponse] = None,
        *,
        request=None,
    ) -> HttpResponse:
        """
        Render into ``response`` when given, keeping its status and headers;
        otherwise build a new 200 response.
        """
        body = self.render(template_name, params, request=request)
        if response is None:
            return HttpResponse(body)
        response.content = body
        if response.has_header("Content-Length"):
            response["Content-Length"] = str(len(response.content))
        return response


default_templating = DjangoTemplating()

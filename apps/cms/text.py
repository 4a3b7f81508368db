"""String helpers shared by the CMS."""

from __future__ import annotations

import re
from typing import Any, Mapping

_MUSTACHE_RE = re.compile(r"{{\s*(.+?)\s*}}")


def mustache_replace(value: str, parameters: Mapping[str, Any]) -> str:
    """
    Replace ``{{ name }}`` placeholders with values from ``parameters``.

    Unknown placeholders are left untouched.
    """
    if not value:
        return value or ""

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in parameters:
            return str(parameters[name])
        return match.group(0)

    return _MUSTACHE_RE.sub(_replace, value)

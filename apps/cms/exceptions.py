"""Errors raised by the CMS page/block pipeline."""

from __future__ import annotations


class CmsError(Exception):
    """Base class for CMS errors."""


class NotFoundError(CmsError):
    """A page or block reference does not resolve."""


class ConfigurationError(CmsError):
    """Missing default template, block service or cache backend registration."""


class RenderError(CmsError):
    """A block service failed while rendering a block."""

    def __init__(self, message: str, *, block_id=None, block_type: str = ""):
        super().__init__(message)
        self.block_id = block_id
        self.block_type = block_type


class InternalError(CmsError):
    """No page is configured to handle an HTTP error code."""

"""Exceptions raised while assembling pages."""

from __future__ import annotations


class PageBuilderError(RuntimeError):
    """Base class for failures that abort a page build."""


class ConfigurationError(PageBuilderError):
    """Raised when site configuration or a declared resource cannot be resolved."""


class MissingTemplateError(PageBuilderError):
    """Raised when a partial's template cannot be located or read."""


class ContentNotFoundError(PageBuilderError):
    """Raised when a content document or collection does not exist in the pod."""


class TemplateRenderError(PageBuilderError):
    """Raised when a template fails to compile or render."""

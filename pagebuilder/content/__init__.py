"""Content models exposed to templates and the page builder."""

from .models import (
    Collection,
    Document,
    Environment,
    Locale,
    LocalizedCollection,
    StaticFile,
    Url,
    html_lang,
    localize_fields,
)

__all__ = [
    "Collection",
    "Document",
    "Environment",
    "Locale",
    "LocalizedCollection",
    "StaticFile",
    "Url",
    "html_lang",
    "localize_fields",
]

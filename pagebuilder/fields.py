"""Field lookup with fallback from a document to its collection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .content import Document


class FieldResolver:
    """Resolve a named field for one document.

    The document's own value wins; ``None`` (or a missing key) falls back to
    the collection default. ``False`` is a real value and is returned as-is.
    """

    def __init__(self, doc: "Document") -> None:
        self._doc = doc

    def resolve(self, name: str, default: Any = None) -> Any:
        value = self._doc.fields.get(name)
        if value is None and self._doc.collection is not None:
            value = self._doc.collection.fields.get(name)
        return default if value is None else value

    def __call__(self, name: str, default: Any = None) -> Any:
        return self.resolve(name, default)

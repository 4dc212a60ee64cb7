"""Rendering of partial modules and the resources they depend on."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from html import escape
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

from .config import BuiltinPartial, PartialPaths
from .errors import ConfigurationError, MissingTemplateError
from .resources import ResourceDeduplicator
from .templates import RenderContext

if TYPE_CHECKING:
    from .content import Locale
    from .pod import Pod

logger = logging.getLogger(__name__)

BUILTIN_CONTENT_PATH = "/content/partials/{name}.yaml"
MODULE_OPEN = "<page-module>"
MODULE_CLOSE = "</page-module>"


@dataclass(frozen=True, slots=True)
class NamedPartial:
    """A partial located by convention from its name."""

    name: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    include_inspector: bool = True
    view: str | None = None


@dataclass(frozen=True, slots=True)
class InlinePartial:
    """A partial whose template is read from an explicit file path."""

    name: str
    template_path: Path
    fields: Mapping[str, Any] = field(default_factory=dict)
    include_inspector: bool = True


PartialDescriptor = NamedPartial | InlinePartial

_RESERVED_KEYS = ("partial", "includeInspector")


def parse_partial(raw: Any) -> PartialDescriptor:
    """Build a descriptor from content data.

    ``{"partial": "hero", ...}`` names a conventional partial.
    ``{"partial": {"partial": "hero", "absolutePath": "/abs/hero.njk"}, ...}``
    points at an inline template file. Remaining keys are the partial's fields.
    """
    if isinstance(raw, (NamedPartial, InlinePartial)):
        return raw
    if isinstance(raw, str) and raw.strip():
        return NamedPartial(name=raw.strip())
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Partial declaration must be a mapping, got {raw!r}.")

    fields = {key: value for key, value in raw.items() if key not in _RESERVED_KEYS}
    include_inspector = raw.get("includeInspector") is not False
    match raw.get("partial"):
        case str() as name if name.strip():
            return NamedPartial(name=name.strip(), fields=fields, include_inspector=include_inspector)
        case {"absolutePath": str() as path, **options} if path.strip():
            template_path = Path(path)
            name = str(options.get("partial") or template_path.stem)
            return InlinePartial(
                name=name,
                template_path=template_path,
                fields=fields,
                include_inspector=include_inspector and options.get("includeInspector") is not False,
            )
        case {"partial": str() as name, **options} if name.strip():
            return NamedPartial(
                name=name.strip(),
                fields=fields,
                include_inspector=include_inspector and options.get("includeInspector") is not False,
            )
    raise ConfigurationError(f"Partial declaration {raw!r} has neither a name nor a template path.")


def template_fields(descriptor: PartialDescriptor) -> dict[str, Any]:
    """Values exposed to the partial's template as ``partial``."""
    values = dict(descriptor.fields)
    values["partial"] = descriptor.name
    return values


class PartialRenderer:
    """Render partial modules for one page build."""

    def __init__(
        self,
        pod: "Pod",
        context: RenderContext,
        resources: ResourceDeduplicator,
        *,
        paths: PartialPaths | None = None,
        inspector: bool = False,
    ) -> None:
        self._pod = pod
        self._context = context
        self._resources = resources
        self._paths = paths or PartialPaths()
        self._inspector = inspector

    def view_path(self, name: str) -> str:
        return self._paths.view.format(name=name)

    def _dependencies(self, name: str) -> list[str]:
        markup: list[str] = []
        css_file = self._pod.static_file(self._paths.css.format(name=name))
        js_file = self._pod.static_file(self._paths.js.format(name=name))
        if css_file.exists:
            markup.append(self._resources.stylesheet(css_file))
        else:
            logger.debug("No stylesheet for partial %s at %s", name, css_file.pod_path)
        if js_file.exists:
            markup.append(self._resources.script(js_file))
        else:
            logger.debug("No script for partial %s at %s", name, js_file.pod_path)
        return markup

    async def render(self, raw: Any) -> str:
        descriptor = parse_partial(raw)
        name = descriptor.name
        # Resources register before the first await so dedup order follows list order.
        parts = self._dependencies(name)
        parts.append(MODULE_OPEN)
        if self._inspector and descriptor.include_inspector:
            parts.append(f'<page-module-inspector partial="{escape(name, quote=True)}"></page-module-inspector>')

        context = self._context.as_dict(partial=template_fields(descriptor))
        match descriptor:
            case NamedPartial(view=view):
                template_path = view or self.view_path(name)
                engine = self._pod.engines.get_engine_by_filename(template_path)
                html = await engine.render(template_path, context)
            case InlinePartial(template_path=path):
                try:
                    template_text = path.read_text(encoding="utf-8")
                except OSError as exc:
                    raise MissingTemplateError(
                        f"Inline template for partial '{name}' could not be read from {path}: {exc}"
                    ) from exc
                engine = self._pod.engines.get_engine_by_filename(self._paths.view)
                html = await engine.render_from_string(template_text, context)

        parts.append(html)
        parts.append(MODULE_CLOSE)
        return "\n".join(part for part in parts if part)

    async def render_builtin(
        self,
        name: str,
        locale: "Locale",
        override: BuiltinPartial | None = None,
    ) -> str:
        """Render a site-wide partial such as ``header``; absent views render nothing."""
        view = (override.view if override else None) or self.view_path(name)
        content = (override.content if override else None) or BUILTIN_CONTENT_PATH.format(name=name)
        if not self._pod.file_exists(view):
            logger.debug("Builtin partial %s has no view at %s", name, view)
            return ""
        fields: Mapping[str, Any] = {}
        if self._pod.file_exists(content):
            fields = self._pod.doc(content, locale).fields
        return await self.render(NamedPartial(name=name, fields=fields, view=view))

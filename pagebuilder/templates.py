"""Template engines used to render views, partials, and extra fragments with Jinja2."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound, select_autoescape

from .errors import ConfigurationError, MissingTemplateError, TemplateRenderError

if TYPE_CHECKING:
    from .content import Document
    from .pod import Pod

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSIONS = (".njk", ".html", ".j2", ".jinja")


@dataclass(slots=True)
class RenderContext:
    """Values shared by every template rendered while building one page."""

    pod: "Pod"
    doc: "Document | None"
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self, **overrides: Any) -> dict[str, Any]:
        values: dict[str, Any] = {
            "pod": self.pod,
            "doc": self.doc,
            "env": self.pod.env,
        }
        values.update(self.extra)
        values.update(overrides)
        return values


class JinjaEngine:
    """Async Jinja2 environment whose loader is rooted at the pod directory."""

    def __init__(self, pod: "Pod") -> None:
        self._pod = pod
        self.environment = Environment(
            loader=FileSystemLoader(str(pod.root)),
            autoescape=select_autoescape(
                ["html", "xml", "njk", "j2", "jinja"],
                default_for_string=True,
            ),
            trim_blocks=True,
            lstrip_blocks=True,
            enable_async=True,
        )
        self.environment.globals["pod"] = pod

    async def render(self, pod_path: str, context: Mapping[str, Any]) -> str:
        """Render the template stored at ``pod_path``."""
        try:
            template = self.environment.get_template(pod_path.lstrip("/"))
        except TemplateNotFound as exc:
            raise MissingTemplateError(f"Template {pod_path} was not found in the pod.") from exc
        except TemplateError as exc:
            raise TemplateRenderError(f"Template {pod_path} could not be compiled: {exc}") from exc
        try:
            return await template.render_async(**context)
        except TemplateError as exc:
            raise TemplateRenderError(f"Failed to render {pod_path}: {exc}") from exc

    async def render_from_string(self, template_text: str, context: Mapping[str, Any]) -> str:
        """Render an anonymous template string."""
        try:
            template = self.environment.from_string(template_text)
            return await template.render_async(**context)
        except TemplateError as exc:
            raise TemplateRenderError(f"Failed to render inline template: {exc}") from exc


class TemplateEngines:
    """Registry of template engines keyed by file extension."""

    def __init__(self, pod: "Pod") -> None:
        self._engines: dict[str, Any] = {}
        default = JinjaEngine(pod)
        for extension in TEMPLATE_EXTENSIONS:
            self.register(extension, default)

    def register(self, extension: str, engine: Any) -> None:
        normalized = extension if extension.startswith(".") else f".{extension}"
        self._engines[normalized.lower()] = engine

    def get_engine_by_filename(self, pod_path: str) -> Any:
        extension = posixpath.splitext(pod_path)[1].lower()
        try:
            return self._engines[extension]
        except KeyError:
            raise ConfigurationError(
                f"No template engine registered for '{extension or pod_path}'."
            ) from None

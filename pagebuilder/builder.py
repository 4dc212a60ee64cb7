"""Assemble complete HTML documents from a page's fields and partials."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .beautify import beautify, strip_blank_lines
from .body import BodyAssembler
from .config import PageBuilderOptions
from .content import Locale, html_lang
from .head import HeadAssembler
from .preview import PartialPreviewRouteProvider
from .router import InspectorStaticRouteProvider
from .scope import BuildScope
from .sitemap import SitemapProvider
from .templates import RenderContext

if TYPE_CHECKING:
    from .content import Document
    from .pod import Pod

logger = logging.getLogger(__name__)

SCHEMA_TYPE = "https://schema.org/WebPage"


class PageBuilder:
    """Render one document into a full HTML page.

    A builder (and the resource registry it owns) lives for exactly one
    build; use :meth:`build` rather than reusing instances.
    """

    def __init__(
        self,
        doc: "Document",
        context: RenderContext | None = None,
        options: PageBuilderOptions | None = None,
    ) -> None:
        self.doc = doc
        self.pod = doc.pod
        self.context = context if context is not None else RenderContext(pod=self.pod, doc=doc)
        self.options = options if options is not None else self.pod.config.page_builder
        self.scope = BuildScope.create(doc, self.context, self.options)

    @classmethod
    async def build(
        cls,
        doc: "Document",
        context: RenderContext | None = None,
        options: PageBuilderOptions | None = None,
    ) -> str:
        builder = cls(doc, context, options)
        return await builder.build_document()

    @staticmethod
    def register(pod: "Pod", options: PageBuilderOptions | None = None) -> None:
        """Make the page builder the pod's default view and add its routes."""
        resolved = options if options is not None else pod.config.page_builder
        SitemapProvider.register(
            pod,
            sitemap_path=resolved.sitemap_xml.path,
            robots_txt_path=resolved.robots_txt.path,
        )
        PartialPreviewRouteProvider.register(pod)
        InspectorStaticRouteProvider.register(pod)

        async def default_view(context: RenderContext) -> str:
            return await PageBuilder.build(context.doc, context, resolved)

        pod.default_view = default_view

    @staticmethod
    def html_lang(locale: Locale | str) -> str:
        return html_lang(locale.id if isinstance(locale, Locale) else locale)

    async def build_document(self) -> str:
        head = await HeadAssembler(self.scope).build()
        body = await BodyAssembler(self.scope).build()
        html = "\n".join(
            [
                "<!DOCTYPE html>",
                f'<html lang="{self.html_lang(self.doc.locale)}" itemscope itemtype="{SCHEMA_TYPE}">',
                head,
                body,
                "</html>",
            ]
        )
        html = strip_blank_lines(html)
        logger.debug(
            "Built %r with %d unique resources",
            self.doc,
            len(self.scope.resources.registry),
        )
        if self.options.beautify is False:
            return html
        return beautify(html, indent_size=2)

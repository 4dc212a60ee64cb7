"""sitemap.xml and robots.txt routes."""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING, Iterable

from .fields import FieldResolver
from .router import DocumentRoute, Route, RouteProvider, Router, TextRoute

if TYPE_CHECKING:
    from .content import Document
    from .pod import Pod

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XHTML_NS = "http://www.w3.org/1999/xhtml"


class SitemapProvider(RouteProvider):
    """Generates a sitemap of every routed document plus a matching robots.txt."""

    def __init__(
        self,
        router: Router,
        *,
        sitemap_path: str = "/sitemap.xml",
        robots_txt_path: str = "/robots.txt",
    ) -> None:
        super().__init__(router)
        self.sitemap_path = sitemap_path
        self.robots_txt_path = robots_txt_path

    @classmethod
    def register(  # type: ignore[override]
        cls,
        pod: "Pod",
        *,
        sitemap_path: str = "/sitemap.xml",
        robots_txt_path: str = "/robots.txt",
    ) -> "SitemapProvider":
        provider = cls(pod.router, sitemap_path=sitemap_path, robots_txt_path=robots_txt_path)
        pod.router.add_provider(provider)
        return provider

    def routes(self) -> Iterable[Route]:
        yield TextRoute(self.sitemap_path, self.build_sitemap, content_type="application/xml; charset=utf-8")
        yield TextRoute(self.robots_txt_path, self.build_robots_txt)

    def _documents(self) -> list["Document"]:
        docs = [route.doc for route in self.router.routes() if isinstance(route, DocumentRoute)]
        return [doc for doc in docs if doc.url is not None and not FieldResolver(doc).resolve("noIndex")]

    def _alternates(self, doc: "Document") -> list[tuple[str, str]]:
        alternates: list[tuple[str, str]] = []
        for locale in doc.locales:
            sibling = self.pod.doc(doc.pod_path, locale)
            if sibling.url is not None:
                alternates.append((locale.html_lang, str(sibling.url)))
        return alternates

    async def build_sitemap(self) -> str:
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<urlset xmlns="{SITEMAP_NS}" xmlns:xhtml="{XHTML_NS}">',
        ]
        for doc in self._documents():
            lines.append("  <url>")
            lines.append(f"    <loc>{escape(str(doc.url))}</loc>")
            alternates = self._alternates(doc)
            if len(alternates) > 1:
                for hreflang, href in alternates:
                    lines.append(
                        f'    <xhtml:link rel="alternate" hreflang="{escape(hreflang)}" href="{escape(href)}"/>'
                    )
            lines.append("  </url>")
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"

    async def build_robots_txt(self) -> str:
        lines = [
            "User-agent: *",
            "Allow: /",
            f"Sitemap: {self.pod.env.origin}{self.sitemap_path}",
        ]
        return "\n".join(lines) + "\n"

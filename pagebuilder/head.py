"""Assembly of the <head> element."""

from __future__ import annotations

import logging
from html import escape
from typing import Any

from .content import Locale, StaticFile, Url
from .router import InspectorStaticRouteProvider
from .scope import BuildScope

logger = logging.getLogger(__name__)

VIEWPORT = "width=device-width, initial-scale=1.0"


def _attr(value: Any) -> str:
    return escape(str(value), quote=True)


class HeadAssembler:
    """Build the document head for one page.

    The output order is fixed: base meta tags, page metadata, canonical and
    hreflang links, the icon, global stylesheets then scripts, extra
    fragments, and finally the inspector scripts.
    """

    def __init__(self, scope: BuildScope) -> None:
        self._scope = scope

    async def build(self) -> str:
        scope = self._scope
        head = scope.options.head
        field = scope.fields.resolve

        parts = [
            "<head>",
            '<meta charset="utf-8">',
            f'<meta name="viewport" content="{VIEWPORT}">',
            self.meta_elements(
                description=field("description", head.description),
                image=field("image", head.image),
                locale=scope.doc.locale.id,
                no_index=field("noIndex", head.no_index),
                site_name=field("siteName", head.site_name),
                theme_color=field("themeColor", head.theme_color),
                title=field("title", head.site_name),
                twitter_site=field("twitterSite", head.twitter_site),
                url=scope.doc.url,
            ),
            self.hreflang_elements(),
            self.icon_element(field("icon", head.icon)),
        ]
        parts.extend(scope.resources.stylesheet(item) for item in head.stylesheets)
        parts.extend(scope.resources.script(item) for item in head.scripts)
        if head.extra:
            parts.append(await scope.render_files(head.extra))
        if scope.inspector:
            parts.extend(
                scope.resources.script(f"{InspectorStaticRouteProvider.url_base}/{path}")
                for path in InspectorStaticRouteProvider.files
            )
        parts.append("</head>")
        return "\n".join(part for part in parts if part)

    def _asset(self, value: Any) -> StaticFile | str | None:
        if isinstance(value, dict) and isinstance(value.get("static"), str):
            return self._scope.pod.static_file(value["static"])
        if isinstance(value, (StaticFile, str)):
            return value or None
        return None

    def meta_elements(
        self,
        *,
        title: str | None,
        url: Url | None,
        description: str | None = None,
        image: Any = None,
        locale: str | None = None,
        no_index: bool | None = None,
        site_name: str | None = None,
        theme_color: str | None = None,
        twitter_site: str | None = None,
    ) -> str:
        resolver = self._scope.resolver
        image_url = resolver.resolve_url(self._asset(image), include_domain=True)
        lines: list[str] = []
        if title:
            lines.append(f"<title>{escape(str(title))}</title>")
        if description:
            lines.append(f'<meta name="description" content="{_attr(description)}">')
        if theme_color:
            lines.append(f'<meta name="theme-color" content="{_attr(theme_color)}">')
        if no_index:
            lines.append('<meta name="robots" content="noindex">')
        lines.append('<meta name="referrer" content="no-referrer">')
        lines.append('<meta property="og:type" content="website">')
        if site_name:
            lines.append(f'<meta property="og:site_name" content="{_attr(site_name)}">')
        if url is not None:
            lines.append(f'<meta property="og:url" content="{_attr(url)}">')
        if title:
            lines.append(f'<meta property="og:title" content="{_attr(title)}">')
        if description:
            lines.append(f'<meta property="og:description" content="{_attr(description)}">')
        if image_url:
            lines.append(f'<meta property="og:image" content="{_attr(image_url)}">')
        if locale:
            lines.append(f'<meta property="og:locale" content="{_attr(locale)}">')
        if twitter_site:
            lines.append(f'<meta property="twitter:site" content="{_attr(twitter_site)}">')
        if title:
            lines.append(f'<meta property="twitter:title" content="{_attr(title)}">')
        if description:
            lines.append(f'<meta property="twitter:description" content="{_attr(description)}">')
        if image_url:
            lines.append(f'<meta property="twitter:image" content="{_attr(image_url)}">')
        lines.append('<meta property="twitter:card" content="summary_large_image">')
        return "\n".join(lines)

    def sibling_url(self, locale: Locale) -> str | None:
        """Absolute URL of this page in ``locale``, if that page exists and has one."""
        doc = self._scope.doc
        if locale == doc.locale:
            return self._scope.resolver.resolve_url(doc.url)
        pod = self._scope.pod
        # Synthetic documents (partial previews) have no siblings on disk.
        if not pod.file_exists(doc.pod_path):
            return None
        return self._scope.resolver.resolve_url(pod.doc(doc.pod_path, locale).url)

    def hreflang_elements(self) -> str:
        doc = self._scope.doc
        lines: list[str] = []
        if doc.url is not None:
            lines.append(f'<link href="{_attr(doc.url)}" rel="canonical">')
        default_url = self.sibling_url(doc.default_locale)
        if default_url:
            lines.append(f'<link href="{_attr(default_url)}" hreflang="x-default" rel="alternate">')
        for locale in doc.locales:
            if locale == doc.default_locale:
                continue
            url = self.sibling_url(locale)
            if not url:
                logger.debug("No %s alternate for %r", locale.id, doc)
                continue
            lines.append(f'<link href="{_attr(url)}" hreflang="{_attr(locale.html_lang)}" rel="alternate">')
        return "\n".join(lines)

    def icon_element(self, icon: Any) -> str:
        href = self._scope.resolver.resolve_url(self._asset(icon), relative=True)
        if not href:
            return ""
        return f'<link rel="icon" href="{_attr(href)}">'

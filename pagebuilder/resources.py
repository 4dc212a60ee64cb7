"""Resolution and per-page deduplication of stylesheet and script resources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import TYPE_CHECKING, Any, Iterator

from .content import StaticFile, Url
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .content import Document
    from .pod import Pod

logger = logging.getLogger(__name__)

FINGERPRINT_PARAM = "fingerprint"


class ResourceKind(str, Enum):
    """Markup flavours a resource can be emitted as."""

    SCRIPT = "script"
    STYLESHEET = "stylesheet"


@dataclass(frozen=True, slots=True)
class StaticResource:
    """A pod asset with a served URL and a content fingerprint."""

    file: StaticFile


@dataclass(frozen=True, slots=True)
class UrlResource:
    """A plain URL, emitted without fingerprinting."""

    url: str


@dataclass(frozen=True, slots=True)
class ResourceLoader:
    """A resource plus loading options.

    ``async_`` and ``defer`` apply to scripts. A stylesheet loads
    asynchronously through the preload form only when ``preload`` or
    ``async_`` is set; otherwise it is a plain ``rel="stylesheet"`` link.
    """

    href: StaticFile | str
    async_: bool = False
    defer: bool = False
    preload: bool = False


Resource = StaticResource | UrlResource | ResourceLoader


def coerce_resource(value: Any, pod: "Pod") -> Resource:
    """Turn a configuration value into a :data:`Resource`.

    Accepted shapes: a plain string (URL), ``{"static": "/pod/path"}``,
    ``{"href": <string or {"static": ...}>, "async": bool, "defer": bool,
    "preload": bool}``, a :class:`StaticFile`, or a resource instance.
    """
    match value:
        case StaticResource() | UrlResource() | ResourceLoader():
            return value
        case StaticFile():
            return StaticResource(value)
        case str() if value.strip():
            return UrlResource(value.strip())
        case {"static": str() as pod_path, **rest} if not rest:
            return StaticResource(pod.static_file(pod_path))
        case {"href": href, **rest}:
            target: StaticFile | str
            if isinstance(href, dict) and isinstance(href.get("static"), str):
                target = pod.static_file(href["static"])
            elif isinstance(href, (StaticFile, str)):
                target = href
            else:
                raise ConfigurationError(f"Resource href {href!r} is neither a URL nor a static file.")
            return ResourceLoader(
                href=target,
                async_=bool(rest.get("async", False)),
                defer=bool(rest.get("defer", False)),
                preload=bool(rest.get("preload", False)),
            )
    raise ConfigurationError(f"Unsupported resource declaration: {value!r}")


def append_fingerprint(url: str, fingerprint: str | None) -> str:
    if not fingerprint or "?" in url:
        return url
    return f"{url}?{FINGERPRINT_PARAM}={fingerprint}"


class ResourceResolver:
    """Resolve resources to canonical URLs for one document."""

    def __init__(self, doc: "Document | None") -> None:
        self._doc = doc

    def resolve_href(
        self,
        resource: Resource,
        *,
        include_fingerprint: bool = True,
    ) -> StaticFile | str | None:
        """Return the href for ``resource``.

        Static resources become their URL path, fingerprinted unless disabled
        or already carrying a query string. Loader hrefs are returned as
        declared and finished by :meth:`resolve_url`.
        """
        match resource:
            case StaticResource(file=static_file):
                url = static_file.url
                if url is None:
                    return None
                if include_fingerprint:
                    return append_fingerprint(url.path, static_file.fingerprint)
                return url.path
            case ResourceLoader(href=href):
                return href
            case UrlResource(url=url):
                return url

    def resolve_url(
        self,
        value: StaticFile | Url | str | None,
        *,
        include_domain: bool = False,
        relative: bool = False,
    ) -> str | None:
        """Resolve ``value`` to a URL string, or ``None`` when none is derivable."""
        fingerprint: str | None = None
        url: str | None
        match value:
            case None:
                return None
            case StaticFile():
                fingerprint = value.fingerprint
                static_url = value.url
                if static_url is None:
                    return None
                url = str(static_url) if include_domain else static_url.path
            case Url():
                url = str(value)
            case str():
                url = value
            case _:
                raise ConfigurationError(f"Cannot derive a URL from {value!r}.")
        if relative and url:
            url = Url.relative(url, self._doc)
        if not url:
            return None
        return append_fingerprint(url, fingerprint)


class ResourceRegistry:
    """URLs already emitted into the document being built.

    One registry belongs to exactly one page build. All access happens
    synchronously on the event loop thread, between awaits.
    """

    def __init__(self) -> None:
        self._urls: list[str] = []
        self._seen: set[str] = set()

    def __contains__(self, url: object) -> bool:
        return url in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def add(self, url: str) -> None:
        if url not in self._seen:
            self._seen.add(url)
            self._urls.append(url)


class ResourceDeduplicator:
    """Emit ``<script>`` and ``<link>`` markup at most once per URL."""

    def __init__(
        self,
        pod: "Pod",
        resolver: ResourceResolver,
        registry: ResourceRegistry | None = None,
    ) -> None:
        self._pod = pod
        self._resolver = resolver
        self.registry = registry if registry is not None else ResourceRegistry()

    def emit(self, kind: ResourceKind, value: Any) -> str:
        resource = coerce_resource(value, self._pod)
        href = self._resolver.resolve_href(resource)
        url = self._resolver.resolve_url(href, relative=True)
        if not url:
            raise ConfigurationError(
                f"Resource {resource!r} has no URL. Does it exist and is it mapped in static_routes?"
            )
        if url in self.registry:
            logger.debug("Skipping duplicate %s %s", kind.value, url)
            return ""
        self.registry.add(url)
        if kind is ResourceKind.SCRIPT:
            return _script_markup(url, resource)
        return _stylesheet_markup(url, resource)

    def script(self, value: Any) -> str:
        return self.emit(ResourceKind.SCRIPT, value)

    def stylesheet(self, value: Any) -> str:
        return self.emit(ResourceKind.STYLESHEET, value)


def _script_markup(url: str, resource: Resource) -> str:
    attributes = [f'src="{escape(url, quote=True)}"']
    if isinstance(resource, ResourceLoader):
        if resource.defer:
            attributes.append("defer")
        if resource.async_:
            attributes.append("async")
    return f"<script {' '.join(attributes)}></script>"


def _stylesheet_markup(url: str, resource: Resource) -> str:
    href = escape(url, quote=True)
    loads_async = isinstance(resource, ResourceLoader) and (resource.preload or resource.async_)
    if not loads_async:
        return f'<link href="{href}" rel="stylesheet">'
    return (
        f'<link href="{href}" rel="preload" as="style" '
        "onload=\"this.onload=null;this.rel='stylesheet'\">"
    )

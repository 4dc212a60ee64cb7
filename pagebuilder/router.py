"""Route providers mapping URL paths onto documents, static files, and generated text."""

from __future__ import annotations

import logging
import mimetypes
from importlib import resources as importlib_resources
from typing import TYPE_CHECKING, Awaitable, Callable, Iterable

from .errors import ConfigurationError
from .templates import RenderContext

if TYPE_CHECKING:
    from .content import Document, StaticFile
    from .pod import Pod

logger = logging.getLogger(__name__)


class Route:
    """A single URL path and the way to build its response body."""

    content_type = "text/html; charset=utf-8"

    def __init__(self, url_path: str) -> None:
        self.url_path = url_path

    async def build(self) -> str | bytes:  # pragma: no cover - abstract
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.url_path}>"


class DocumentRoute(Route):
    """Renders a document through its ``$view`` template or the pod's default view."""

    def __init__(self, doc: "Document", url_path: str | None = None) -> None:
        if url_path is None:
            if doc.url is None:
                raise ConfigurationError(f"{doc!r} has no URL and needs an explicit route path.")
            url_path = doc.url.path
        super().__init__(url_path)
        self.doc = doc

    async def build(self) -> str:
        pod = self.doc.pod
        context = RenderContext(pod=pod, doc=self.doc)
        if self.doc.view:
            engine = pod.engines.get_engine_by_filename(self.doc.view)
            return await engine.render(self.doc.view, context.as_dict())
        if pod.default_view is None:
            raise ConfigurationError(f"{self.doc!r} has no $view and the pod has no default view.")
        return await pod.default_view(context)


class StaticRoute(Route):
    """Serves a pod file verbatim."""

    def __init__(self, static_file: "StaticFile", url_path: str) -> None:
        super().__init__(url_path)
        self.static_file = static_file
        content_type, _ = mimetypes.guess_type(url_path)
        self.content_type = content_type or "application/octet-stream"

    async def build(self) -> bytes:
        return self.static_file.pod.read_bytes(self.static_file.pod_path)


class TextRoute(Route):
    """Serves generated text such as ``robots.txt``."""

    def __init__(
        self,
        url_path: str,
        builder: Callable[[], Awaitable[str]],
        *,
        content_type: str = "text/plain; charset=utf-8",
    ) -> None:
        super().__init__(url_path)
        self._builder = builder
        self.content_type = content_type

    async def build(self) -> str:
        return await self._builder()


class RouteProvider:
    """Contributes routes to a router."""

    def __init__(self, router: "Router") -> None:
        self.router = router
        self.pod = router.pod

    def routes(self) -> Iterable[Route]:  # pragma: no cover - abstract
        raise NotImplementedError

    @classmethod
    def register(cls, pod: "Pod") -> "RouteProvider":
        provider = cls(pod.router)
        pod.router.add_provider(provider)
        return provider


class DocumentRouteProvider(RouteProvider):
    """One route per document per locale that has a URL."""

    def routes(self) -> Iterable[Route]:
        for doc in self.pod.docs():
            for locale in doc.locales:
                localized = self.pod.doc(doc.pod_path, locale)
                if localized.url is not None:
                    yield DocumentRoute(localized)


class StaticRouteProvider(RouteProvider):
    """Routes for every file under each configured static directory."""

    def routes(self) -> Iterable[Route]:
        for config in self.pod.config.static_routes:
            for pod_path in self.pod.walk(config.static_dir):
                static_file = self.pod.static_file(pod_path)
                url = static_file.url
                if url is not None:
                    yield StaticRoute(static_file, url.path)


class InspectorStaticRouteProvider(RouteProvider):
    """Serves the inspector UI scripts bundled with this package."""

    url_base = "/_page-builder"
    files = ["page-builder-ui.min.js"]

    def routes(self) -> Iterable[Route]:
        for name in self.files:
            yield TextRoute(
                f"{self.url_base}/{name}",
                self._reader(name),
                content_type="application/javascript; charset=utf-8",
            )

    @staticmethod
    def _reader(name: str) -> Callable[[], Awaitable[str]]:
        async def read() -> str:
            resource = importlib_resources.files("pagebuilder") / "ui" / name
            return resource.read_text(encoding="utf-8")

        return read


class Router:
    """Collects routes from providers and resolves URL paths."""

    def __init__(self, pod: "Pod") -> None:
        self.pod = pod
        self._providers: list[RouteProvider] = [
            DocumentRouteProvider(self),
            StaticRouteProvider(self),
        ]
        self._index: dict[str, Route] | None = None

    @property
    def providers(self) -> list[RouteProvider]:
        return list(self._providers)

    def add_provider(self, provider: RouteProvider) -> None:
        """Register ``provider``, replacing an earlier provider of the same type."""
        self._providers = [item for item in self._providers if type(item) is not type(provider)]
        self._providers.append(provider)
        self._index = None

    def routes(self) -> list[Route]:
        return list(self.warmup().values())

    def warmup(self) -> dict[str, Route]:
        """Build the URL index; two routes claiming one path is a configuration error."""
        if self._index is None:
            index: dict[str, Route] = {}
            for provider in self._providers:
                for route in provider.routes():
                    existing = index.get(route.url_path)
                    if existing is not None:
                        raise ConfigurationError(
                            f"Routes {existing!r} and {route!r} both claim {route.url_path}."
                        )
                    index[route.url_path] = route
            logger.debug("Router indexed %d routes", len(index))
            self._index = index
        return self._index

    def resolve(self, url_path: str) -> Route | None:
        return self.warmup().get(url_path)

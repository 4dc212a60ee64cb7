"""Preview gallery routes rendering each partial in isolation."""

from __future__ import annotations

import logging
import posixpath
from typing import Any, Iterable

from .content import Document
from .partials import BUILTIN_CONTENT_PATH
from .router import DocumentRoute, Route, RouteProvider

logger = logging.getLogger(__name__)

PREVIEW_ROOT = "/preview/"
PREVIEW_POD_PATH = "/_preview/{name}.yaml"


class PartialPreviewRouteProvider(RouteProvider):
    """Routes ``/preview/`` (every partial) and ``/preview/<name>/`` (one partial).

    Preview pages are synthetic documents with no URL of their own, so they
    carry no canonical or alternate links.
    """

    def partial_names(self) -> list[str]:
        view_format = self.pod.config.page_builder.partial_paths.view
        prefix, _, suffix = view_format.partition("{name}")
        names: list[str] = []
        for pod_path in self.pod.walk(posixpath.dirname(prefix) or "/"):
            if pod_path.startswith(prefix) and pod_path.endswith(suffix):
                name = pod_path[len(prefix) : len(pod_path) - len(suffix)]
                if name and "/" not in name:
                    names.append(name)
        return names

    def _fixture(self, name: str) -> dict[str, Any]:
        content_path = BUILTIN_CONTENT_PATH.format(name=name)
        if not self.pod.file_exists(content_path):
            return {"partial": name}
        fields = dict(self.pod.doc(content_path).fields)
        fields["partial"] = name
        return fields

    def preview_doc(self, name: str, partials: list[dict[str, Any]]) -> Document:
        return Document(
            pod=self.pod,
            pod_path=PREVIEW_POD_PATH.format(name=name),
            locale=self.pod.default_locale,
            collection=None,
            raw={
                "title": f"Preview: {name}",
                "noIndex": True,
                "header": False,
                "footer": False,
                "partials": partials,
            },
        )

    def routes(self) -> Iterable[Route]:
        names = self.partial_names()
        if not names:
            logger.debug("No partial views found; preview routes disabled.")
            return
        fixtures = [self._fixture(name) for name in names]
        yield DocumentRoute(self.preview_doc("all", fixtures), url_path=PREVIEW_ROOT)
        for name, fixture in zip(names, fixtures):
            yield DocumentRoute(self.preview_doc(name, [fixture]), url_path=f"{PREVIEW_ROOT}{name}/")

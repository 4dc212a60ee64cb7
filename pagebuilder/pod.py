"""The pod: a site directory holding content, views, and static assets."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterator

import yaml

from .config import SiteConfig, load_config
from .content import Collection, Document, Environment, Locale, LocalizedCollection, StaticFile
from .errors import ConfigurationError, ContentNotFoundError
from .router import Router
from .templates import RenderContext, TemplateEngines

logger = logging.getLogger(__name__)

CONTENT_ROOT = "/content/"
COLLECTION_FILENAME = "_collection.yaml"
CONTENT_EXTENSIONS = (".yaml", ".yml")

DefaultView = Callable[[RenderContext], Awaitable[str]]


class Pod:
    """Content store rooted at a directory on disk.

    Pod paths are always root-relative POSIX paths such as
    ``/content/pages/index.yaml``.
    """

    def __init__(
        self,
        root: str | Path,
        config: SiteConfig | None = None,
        *,
        env_name: str | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.config = config if config is not None else load_config(self.root)
        name, env_config = self.config.environment(env_name)
        self.env = Environment(
            name=name,
            host=env_config.host,
            scheme=env_config.scheme,
            port=env_config.port,
            dev=env_config.dev,
        )
        self.locales: list[Locale] = [Locale(item) for item in self.config.locales]
        self.default_locale = Locale(self.config.default_locale)
        self.default_view: DefaultView | None = None
        self.engines = TemplateEngines(self)
        self.router = Router(self)
        self._docs: dict[tuple[str, Locale], Document] = {}
        self._collections: dict[str, Collection | None] = {}

    def __repr__(self) -> str:
        return f"<Pod {self.root} env={self.env.name}>"

    # -- files ---------------------------------------------------------------

    def abspath(self, pod_path: str) -> Path:
        """Resolve a pod path to a filesystem path that stays inside the pod root."""
        if not pod_path.startswith("/"):
            raise ConfigurationError(f"Pod paths must start with '/': {pod_path!r}")
        candidate = (self.root / pod_path.lstrip("/")).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            raise ConfigurationError(f"Pod path {pod_path!r} escapes the pod root.")
        return candidate

    def file_exists(self, pod_path: str) -> bool:
        try:
            return self.abspath(pod_path).is_file()
        except ConfigurationError:
            return False

    def read_file(self, pod_path: str) -> str:
        return self.abspath(pod_path).read_text(encoding="utf-8")

    def read_bytes(self, pod_path: str) -> bytes:
        return self.abspath(pod_path).read_bytes()

    def walk(self, pod_dir: str) -> Iterator[str]:
        """Yield pod paths of every file below ``pod_dir`` in sorted order."""
        base = self.abspath(pod_dir)
        if not base.is_dir():
            return
        for path in sorted(p for p in base.rglob("*") if p.is_file()):
            yield "/" + path.relative_to(self.root).as_posix()

    def load_yaml(self, pod_path: str) -> dict[str, Any]:
        try:
            with self.abspath(pod_path).open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except FileNotFoundError as exc:
            raise ContentNotFoundError(f"Content file {pod_path} does not exist.") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Failed to parse {pod_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Content file {pod_path} must define a mapping at its root.")
        return data

    # -- locales -------------------------------------------------------------

    def locale(self, value: Locale | str | None) -> Locale:
        if value is None:
            return self.default_locale
        if isinstance(value, Locale):
            return value
        return Locale(value)

    # -- content -------------------------------------------------------------

    def collection(self, pod_dir: str) -> Collection | None:
        """Return the collection for a content directory, if it declares one."""
        key = pod_dir if pod_dir.endswith("/") else f"{pod_dir}/"
        if key not in self._collections:
            blueprint = f"{key}{COLLECTION_FILENAME}"
            if self.file_exists(blueprint):
                self._collections[key] = Collection(pod=self, pod_path=key, raw=self.load_yaml(blueprint))
            else:
                self._collections[key] = None
        return self._collections[key]

    def doc(self, pod_path: str, locale: Locale | str | None = None) -> Document:
        """Load a content document for ``locale`` (the default locale if omitted)."""
        resolved_locale = self.locale(locale)
        key = (pod_path, resolved_locale)
        if key not in self._docs:
            raw = self.load_yaml(pod_path)
            collection = self.collection(posixpath.dirname(pod_path))
            self._docs[key] = Document(
                pod=self,
                pod_path=pod_path,
                locale=resolved_locale,
                collection=LocalizedCollection(collection, resolved_locale) if collection else None,
                raw=raw,
            )
        return self._docs[key]

    def docs(self, locale: Locale | str | None = None) -> list[Document]:
        """Every content document in the pod, skipping ``_``-prefixed files."""
        found: list[Document] = []
        for pod_path in self.walk(CONTENT_ROOT):
            basename = posixpath.basename(pod_path)
            if basename.startswith("_") or not basename.endswith(CONTENT_EXTENSIONS):
                continue
            found.append(self.doc(pod_path, locale))
        return found

    # -- static files --------------------------------------------------------

    def static_file(self, pod_path: str) -> StaticFile:
        return StaticFile(pod=self, pod_path=pod_path)

    def static_url_path(self, pod_path: str) -> str | None:
        """Map a pod path onto its served URL path using the configured static routes."""
        for route in self.config.static_routes:
            if pod_path.startswith(route.static_dir):
                return f"{route.path}{pod_path[len(route.static_dir):]}"
        return None

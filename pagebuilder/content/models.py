"""Runtime representations of pod content: locales, URLs, documents, and static files."""

from __future__ import annotations

import hashlib
import posixpath
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from ..pod import Pod

_DUPLICATE_SLASHES = re.compile(r"/{2,}")
_ABSOLUTE_URL = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*:|//)")


def html_lang(locale_id: str) -> str:
    """Map a locale id to a language tag: `en_US` -> `en-US`, `en_ALL` -> `en`."""
    return locale_id.replace("_ALL", "").replace("_", "-")


@dataclass(frozen=True, slots=True)
class Locale:
    """A locale identifier such as ``en_US`` or ``de``."""

    id: str

    def __str__(self) -> str:
        return self.id

    @property
    def html_lang(self) -> str:
        """The BCP 47 style tag used in `lang` and `hreflang` attributes."""
        return html_lang(self.id)


@dataclass(frozen=True, slots=True)
class Environment:
    """The environment a pod is built for; decides hosts and dev-only features."""

    name: str = "default"
    host: str = "localhost"
    scheme: str = "http"
    port: int | None = None
    dev: bool = False

    @property
    def origin(self) -> str:
        netloc = self.host if self.port is None else f"{self.host}:{self.port}"
        return f"{self.scheme}://{netloc}"


@dataclass(frozen=True, slots=True)
class Url:
    """A root-relative URL path bound to the environment that serves it."""

    path: str
    env: Environment

    def __str__(self) -> str:
        return f"{self.env.origin}{self.path}"

    @staticmethod
    def relative(path: str, doc: "Document | None") -> str:
        """Rewrite a root-relative ``path`` relative to the URL of ``doc``.

        Absolute URLs, non root-relative values, and documents without URLs
        leave ``path`` untouched.
        """
        if not path or _ABSOLUTE_URL.match(path) or not path.startswith("/"):
            return path
        doc_url = doc.url if doc is not None else None
        if doc_url is None:
            return path
        target, sep, query = path.partition("?")
        base = doc_url.path if doc_url.path.endswith("/") else posixpath.dirname(doc_url.path)
        rel = posixpath.relpath(target, base or "/")
        if rel == ".":
            rel = ""
        elif target.endswith("/"):
            rel = f"{rel}/"
        return f"./{rel}{sep}{query}"


def localize_fields(data: Any, locale_id: str) -> Any:
    """Apply ``key@<locale>`` overrides recursively and drop all tagged keys."""
    if isinstance(data, list):
        return [localize_fields(item, locale_id) for item in data]
    if not isinstance(data, dict):
        return data
    result: dict[str, Any] = {}
    overrides: dict[str, Any] = {}
    for key, value in data.items():
        name, tag, tagged_locale = str(key).partition("@")
        if not tag:
            result[name] = localize_fields(value, locale_id)
        elif tagged_locale == locale_id:
            overrides[name] = localize_fields(value, locale_id)
    result.update(overrides)
    return result


def _split_builtins(raw: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    builtins = {key: value for key, value in raw.items() if str(key).startswith("$")}
    fields = {key: value for key, value in raw.items() if not str(key).startswith("$")}
    return builtins, fields


def format_url_path(path_format: str, **values: str) -> str:
    path = path_format.format_map(values)
    return _DUPLICATE_SLASHES.sub("/", path)


@dataclass(slots=True)
class Collection:
    """A content directory whose ``_collection.yaml`` supplies default fields."""

    pod: "Pod"
    pod_path: str
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def basename(self) -> str:
        return posixpath.basename(self.pod_path.rstrip("/"))

    @property
    def builtins(self) -> dict[str, Any]:
        return _split_builtins(self.raw)[0]

    @property
    def fields(self) -> dict[str, Any]:
        return _split_builtins(self.raw)[1]

    def localized_fields(self, locale: Locale) -> dict[str, Any]:
        return localize_fields(self.fields, locale.id)

    @property
    def localization(self) -> dict[str, Any]:
        value = self.builtins.get("$localization")
        return value if isinstance(value, dict) else {}

    @property
    def locales(self) -> list[Locale]:
        configured = self.localization.get("locales")
        if isinstance(configured, list) and configured:
            return [self.pod.locale(str(item)) for item in configured]
        return list(self.pod.locales)


@dataclass(eq=False)
class Document:
    """A single content file loaded for one locale."""

    pod: "Pod"
    pod_path: str
    locale: Locale
    collection: "LocalizedCollection | None"
    raw: dict[str, Any] = field(default_factory=dict)

    @cached_property
    def builtins(self) -> dict[str, Any]:
        return _split_builtins(self.raw)[0]

    @cached_property
    def fields(self) -> dict[str, Any]:
        return localize_fields(_split_builtins(self.raw)[1], self.locale.id)

    @property
    def basename(self) -> str:
        return posixpath.splitext(posixpath.basename(self.pod_path))[0]

    @property
    def default_locale(self) -> Locale:
        return self.pod.default_locale

    @property
    def locales(self) -> list[Locale]:
        if self.collection is not None:
            return self.collection.source.locales
        return list(self.pod.locales)

    @property
    def view(self) -> str | None:
        value = self.builtins.get("$view")
        if value is None and self.collection is not None:
            value = self.collection.source.builtins.get("$view")
        return str(value) if value else None

    @cached_property
    def url(self) -> Url | None:
        path_format = self._path_format()
        if not path_format:
            return None
        base = "" if self.basename == "index" else self.basename
        collection = self.collection.source.basename if self.collection is not None else ""
        path = format_url_path(path_format, base=base, locale=self.locale.id, collection=collection)
        return Url(path=path, env=self.pod.env)

    def _path_format(self) -> str | None:
        localized = self.locale != self.pod.default_locale
        for source in (self.builtins, self.collection.source.builtins if self.collection else {}):
            if localized:
                localization = source.get("$localization")
                if isinstance(localization, dict) and localization.get("path"):
                    return str(localization["path"])
            if "$path" in source:
                return str(source["$path"]) if source["$path"] else None
        return None

    def __repr__(self) -> str:
        return f"<Document {self.pod_path} ({self.locale.id})>"


@dataclass(slots=True)
class LocalizedCollection:
    """A collection bound to the locale of the document that owns it."""

    source: Collection
    locale: Locale

    @property
    def fields(self) -> dict[str, Any]:
        return self.source.localized_fields(self.locale)

    @property
    def pod_path(self) -> str:
        return self.source.pod_path


@dataclass(eq=False)
class StaticFile:
    """A file inside the pod that may be served through a static route."""

    pod: "Pod"
    pod_path: str

    @property
    def exists(self) -> bool:
        return self.pod.file_exists(self.pod_path)

    @cached_property
    def fingerprint(self) -> str | None:
        if not self.exists:
            return None
        return hashlib.md5(self.pod.read_bytes(self.pod_path)).hexdigest()

    @property
    def url(self) -> Url | None:
        path = self.pod.static_url_path(self.pod_path) if self.exists else None
        if path is None:
            return None
        return Url(path=path, env=self.pod.env)

    def __repr__(self) -> str:
        return f"<StaticFile {self.pod_path}>"

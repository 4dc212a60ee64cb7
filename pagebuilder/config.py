import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "pagebuilder.yml"

DEFAULT_CSS_PATH = "/dist/css/partials/{name}.css"
DEFAULT_JS_PATH = "/dist/js/partials/{name}.js"
DEFAULT_VIEW_PATH = "/views/partials/{name}.njk"


class _Options(BaseModel):
    """Read-only option model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


class InspectorOptions(_Options):
    """Controls for the developer inspector overlay."""

    enabled: bool | None = Field(
        default=None,
        description=(
            "Force the inspector on or off. When unset, the inspector is enabled in "
            "dev and staging environments only."
        ),
    )


class BuiltinPartial(_Options):
    """Overrides for where a builtin partial (header, footer) is loaded from."""

    view: str | None = Field(default=None, description="Pod path to the partial template.")
    content: str | None = Field(default=None, description="Pod path to the partial's YAML fields.")


class PartialPaths(_Options):
    """Path formats for the CSS, JS, and view of each partial. ``{name}`` is interpolated."""

    css: str = Field(default=DEFAULT_CSS_PATH)
    js: str = Field(default=DEFAULT_JS_PATH)
    view: str = Field(default=DEFAULT_VIEW_PATH)

    @field_validator("css", "js", "view")
    def _require_name_placeholder(cls, value: str) -> str:
        if "{name}" not in value:
            raise ValueError("Partial path formats must contain a '{name}' placeholder.")
        return value


class HeadOptions(_Options):
    """Defaults and global resources for the <head> element."""

    description: str | None = Field(default=None, description="Default meta description.")
    icon: Any = Field(default=None, description="Favicon resource.")
    image: Any = Field(default=None, description="Default share image (ideally 1200x630).")
    scripts: tuple[Any, ...] = Field(default=(), description="Scripts included on every page.")
    site_name: str | None = Field(default=None, alias="siteName")
    stylesheets: tuple[Any, ...] = Field(default=(), description="Stylesheets included on every page.")
    twitter_site: str | None = Field(default=None, alias="twitterSite")
    theme_color: str | None = Field(default=None, alias="themeColor")
    no_index: bool | None = Field(default=None, alias="noIndex")
    extra: tuple[str, ...] = Field(default=(), description="Pod paths rendered at the end of <head>.")


class BodyOptions(_Options):
    """Customisation of the <body> element."""

    class_: Any = Field(
        default=None,
        alias="class",
        description="Body class: a string, or a callable (sync or async) taking the render context.",
    )
    prepend: tuple[str, ...] = Field(default=(), description="Pod paths rendered at the top of <body>.")
    extra: tuple[str, ...] = Field(default=(), description="Pod paths rendered at the bottom of <body>.")


class SitemapOptions(_Options):
    path: str = Field(default="/sitemap.xml")


class RobotsTxtOptions(_Options):
    path: str = Field(default="/robots.txt")


class PageBuilderOptions(_Options):
    """Site-wide page assembly configuration, supplied once and read-only during builds."""

    inspector: InspectorOptions = Field(default_factory=InspectorOptions)
    beautify: bool | None = Field(default=None, description="Set to false to skip HTML beautification.")
    header: BuiltinPartial | None = Field(default=None)
    footer: BuiltinPartial | None = Field(default=None)
    head: HeadOptions = Field(default_factory=HeadOptions)
    body: BodyOptions = Field(default_factory=BodyOptions)
    partial_paths: PartialPaths = Field(default_factory=PartialPaths, alias="partialPaths")
    sitemap_xml: SitemapOptions = Field(default_factory=SitemapOptions, alias="sitemapXml")
    robots_txt: RobotsTxtOptions = Field(default_factory=RobotsTxtOptions, alias="robotsTxt")


class EnvironmentConfig(BaseModel):
    """Deployment environment used to build absolute URLs."""

    host: str = Field(default="localhost")
    scheme: str = Field(default="http")
    port: int | None = Field(default=None, ge=1, le=65535)
    dev: bool = Field(default=False)


class StaticRouteConfig(BaseModel):
    """Maps a directory inside the pod onto a URL prefix."""

    path: str = Field(description="URL prefix, e.g. '/static/'.")
    static_dir: str = Field(description="Pod directory, e.g. '/dist/'.")

    @field_validator("path", "static_dir")
    def _normalize_prefix(cls, value: str) -> str:
        text = value.strip()
        if not text.startswith("/"):
            text = f"/{text}"
        if not text.endswith("/"):
            text = f"{text}/"
        return text


def _default_environments() -> dict[str, EnvironmentConfig]:
    return {"default": EnvironmentConfig()}


class SiteConfig(BaseModel):
    root: Path = Field(default=Path("."))
    locales: list[str] = Field(default_factory=lambda: ["en"])
    default_locale: str = Field(default="en")
    environments: dict[str, EnvironmentConfig] = Field(default_factory=_default_environments)
    static_routes: list[StaticRouteConfig] = Field(default_factory=list)
    page_builder: PageBuilderOptions = Field(default_factory=PageBuilderOptions)

    @field_validator("root", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("locales")
    def _require_locales(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("At least one locale must be configured.")
        return cleaned

    def environment(self, name: str | None) -> tuple[str, EnvironmentConfig]:
        """Return the named environment, falling back to ``default``."""
        key = name or "default"
        if key in self.environments:
            return key, self.environments[key]
        return key, self.environments.get("default", EnvironmentConfig())


def _read_yaml(config_file: Path) -> dict[str, Any]:
    try:
        with config_file.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to parse {config_file}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{config_file} must contain a mapping at the top level.")
    return data


def load_config(path: str | Path) -> SiteConfig:
    """Load site configuration and anchor the pod root at the config location.

    ``path`` may point to a ``pagebuilder.yml`` file or to a directory. A
    directory without a config file yields the defaults rooted at that
    directory.
    """
    candidate = Path(path)
    data: dict[str, Any] = {}
    if candidate.is_dir():
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        else:
            logger.warning("No %s in %s; using default configuration.", CONFIG_FILENAME, candidate)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    cfg = SiteConfig(**data)
    cfg.root = cfg.root if cfg.root.is_absolute() else (base_dir / cfg.root).resolve()
    if cfg.default_locale not in cfg.locales:
        cfg.locales.insert(0, cfg.default_locale)
    return cfg

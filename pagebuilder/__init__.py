"""pagebuilder: assemble complete HTML pages from content fields and partial modules."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as load_pkg_version
from pathlib import Path
import tomllib

from .builder import PageBuilder
from .config import PageBuilderOptions, SiteConfig, load_config
from .errors import (
    ConfigurationError,
    ContentNotFoundError,
    MissingTemplateError,
    PageBuilderError,
    TemplateRenderError,
)
from .pod import Pod

__all__ = [
    "ConfigurationError",
    "ContentNotFoundError",
    "MissingTemplateError",
    "PageBuilder",
    "PageBuilderError",
    "PageBuilderOptions",
    "Pod",
    "SiteConfig",
    "TemplateRenderError",
    "__version__",
    "load_config",
]


def _read_local_project_version() -> str:
    """Read the project version from pyproject.toml when the package is uninstalled."""
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return "0.0.0"
    return data.get("project", {}).get("version", "0.0.0")


try:
    __version__ = load_pkg_version("pagebuilder")
except PackageNotFoundError:
    __version__ = _read_local_project_version()

"""Writing every routed page and asset of a pod into an output directory."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from .pod import Pod
from .router import DocumentRoute, Route, StaticRoute

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Summary of files written by :func:`export_site`."""

    pages: list[Path] = field(default_factory=list)
    static_files: list[Path] = field(default_factory=list)
    other_files: list[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.pages) + len(self.static_files) + len(self.other_files)


def reset_directory(path: Path) -> None:
    """Remove a directory and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def output_path_for(output_dir: Path, url_path: str) -> Path:
    """Map a URL path onto a file below ``output_dir``; directory URLs get ``index.html``."""
    relative = url_path.lstrip("/")
    if not relative or relative.endswith("/"):
        relative = f"{relative}index.html"
    destination = (output_dir / relative).resolve()
    root = output_dir.resolve()
    if root not in destination.parents:
        raise ValueError(f"Route {url_path!r} resolves outside of {output_dir}.")
    return destination


async def export_site(pod: Pod, output_dir: Path) -> ExportResult:
    """Build every route sequentially and write it beneath ``output_dir``.

    Pages are built one at a time; a failing page aborts the export.
    """
    reset_directory(output_dir)
    result = ExportResult()
    routes: list[Route] = pod.router.routes()
    for route in routes:
        destination = output_path_for(output_dir, route.url_path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        body = await route.build()
        if isinstance(body, bytes):
            destination.write_bytes(body)
        else:
            destination.write_text(body, encoding="utf-8")

        if isinstance(route, DocumentRoute):
            result.pages.append(destination)
        elif isinstance(route, StaticRoute):
            result.static_files.append(destination)
        else:
            result.other_files.append(destination)
    logger.info("Exported %d routes to %s", result.total, output_dir)
    return result

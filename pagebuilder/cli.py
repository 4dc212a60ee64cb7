"""CLI entrypoints for building and previewing page builder sites."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from .builder import PageBuilder
from .config import SiteConfig, load_config
from .errors import PageBuilderError
from .export import ExportResult, export_site
from .pod import Pod
from .preview_server import make_request_handler, serve as serve_pod

console = Console()
app = typer.Typer(help="Assemble static HTML pages from content fields and partials.")

ProjectOption = Annotated[
    str,
    typer.Option("--project", "-p", help="Site directory or path to pagebuilder.yml."),
]
EnvOption = Annotated[
    str | None,
    typer.Option("--env", "-e", help="Environment name from the site configuration."),
]
VerboseFlag = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging."),
]


def _load(path: str) -> SiteConfig:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _open_pod(project: str, env_name: str | None) -> Pod:
    config = _load(project)
    pod = Pod(config.root, config, env_name=env_name)
    PageBuilder.register(pod)
    return pod


def _export(pod: Pod, output_dir: Path) -> ExportResult:
    try:
        return asyncio.run(export_site(pod, output_dir))
    except PageBuilderError as exc:
        console.print(f"[bold red]Build failed[/]: {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def build(
    project: ProjectOption = ".",
    env_name: EnvOption = None,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Output directory (defaults to <site>/build)."),
    ] = None,
    verbose: VerboseFlag = False,
) -> None:
    """Render every route of the site into the output directory."""
    _configure_logging(verbose)
    pod = _open_pod(project, env_name)
    output_dir = Path(output) if output else pod.root / "build"

    console.print(f"[bold blue]Building[/]: {pod.root} (env: {pod.env.name})")
    result = _export(pod, output_dir)
    console.print(
        f"[bold green]Built[/]: {len(result.pages)} pages, "
        f"{len(result.static_files)} static files, "
        f"{len(result.other_files)} other files into {output_dir}"
    )


@app.command()
def routes(
    project: ProjectOption = ".",
    env_name: EnvOption = None,
) -> None:
    """List every URL path the site serves."""
    pod = _open_pod(project, env_name)
    try:
        found = pod.router.routes()
    except PageBuilderError as exc:
        console.print(f"[bold red]Routing failed[/]: {exc}")
        raise typer.Exit(code=1) from exc
    for route in found:
        console.print(f"{route.url_path}  [dim]{type(route).__name__}[/]")


@app.command()
def serve(
    project: ProjectOption = ".",
    env_name: EnvOption = None,
    host: Annotated[str, typer.Option("--host", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", help="Port to bind.")] = 8080,
    verbose: VerboseFlag = False,
) -> None:
    """Serve the site locally, rendering each page when it is requested."""
    _configure_logging(verbose)
    config = _load(project)

    def open_pod() -> Pod:
        pod = Pod(config.root, config, env_name=env_name)
        PageBuilder.register(pod)
        return pod

    pod = open_pod()
    try:
        count = len(pod.router.routes())
    except PageBuilderError as exc:
        console.print(f"[bold red]Routing failed[/]: {exc}")
        raise typer.Exit(code=1) from exc

    handler = make_request_handler(open_pod)
    with serve_pod(host, port, handler) as server:
        console.print(f"[bold blue]Serving[/]: {count} routes at http://{host}:{port}/ (Ctrl+C to stop)")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            console.print("[bold yellow]Stopped[/]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

from __future__ import annotations

import asyncio
import threading
import urllib.error
import urllib.request
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pagebuilder.cli import app
from pagebuilder.errors import ConfigurationError
from pagebuilder.export import export_site, output_path_for
from pagebuilder.preview import PartialPreviewRouteProvider
from pagebuilder.preview_server import make_request_handler, serve
from pagebuilder.router import DocumentRoute, StaticRoute, TextRoute

from conftest import write_file


def test_router_lists_documents_static_files_and_generated_routes(site: Path, make_pod) -> None:
    pod = make_pod(site)
    routes = {route.url_path: route for route in pod.router.routes()}

    assert isinstance(routes["/pages/"], DocumentRoute)
    assert isinstance(routes["/de/pages/"], DocumentRoute)
    assert isinstance(routes["/fr/pages/"], DocumentRoute)
    assert isinstance(routes["/static/css/main.css"], StaticRoute)
    assert isinstance(routes["/sitemap.xml"], TextRoute)
    assert isinstance(routes["/robots.txt"], TextRoute)
    assert isinstance(routes["/_page-builder/page-builder-ui.min.js"], TextRoute)
    assert "/preview/" in routes
    assert "/preview/hero/" in routes


def test_duplicate_route_paths_are_rejected(site: Path, make_pod) -> None:
    write_file(site, "/content/pages/other.yaml", "$path: /pages/\n")
    pod = make_pod(site)
    with pytest.raises(ConfigurationError, match="both claim"):
        pod.router.routes()


def test_sitemap_lists_localized_urls(site: Path, make_pod) -> None:
    write_file(site, "/content/pages/secret.yaml", "noIndex: true\n")
    pod = make_pod(site)
    sitemap = asyncio.run(pod.router.resolve("/sitemap.xml").build())

    assert sitemap.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<loc>http://localhost/pages/</loc>" in sitemap
    assert "<loc>http://localhost/de/pages/</loc>" in sitemap
    assert '<xhtml:link rel="alternate" hreflang="fr" href="http://localhost/fr/pages/"/>' in sitemap
    assert "secret" not in sitemap
    assert "preview" not in sitemap


def test_robots_txt_points_at_sitemap(site: Path, make_pod) -> None:
    pod = make_pod(site, "staging")
    robots = asyncio.run(pod.router.resolve("/robots.txt").build())
    assert robots == "User-agent: *\nAllow: /\nSitemap: https://staging.example.com/sitemap.xml\n"


def test_sitemap_and_robots_paths_are_configurable(site: Path, make_pod) -> None:
    config = (site / "pagebuilder.yml").read_text(encoding="utf-8")
    config += "  sitemapXml:\n    path: /maps/site.xml\n  robotsTxt:\n    path: /robots-custom.txt\n"
    (site / "pagebuilder.yml").write_text(config, encoding="utf-8")
    pod = make_pod(site)

    assert pod.router.resolve("/maps/site.xml") is not None
    assert pod.router.resolve("/robots-custom.txt") is not None
    assert pod.router.resolve("/sitemap.xml") is None


def test_partial_preview_pages_have_no_canonical_link(site: Path, make_pod) -> None:
    pod = make_pod(site)
    html = asyncio.run(pod.router.resolve("/preview/hero/").build())

    assert "<title>Preview: hero</title>" in html
    assert 'rel="canonical"' not in html
    assert "hreflang" not in html
    assert "og:url" not in html
    assert '<meta name="robots" content="noindex">' in html
    assert 'class="header"' not in html
    assert html.count("<page-module>") == 1


def test_partial_preview_gallery_renders_every_partial(site: Path, make_pod) -> None:
    pod = make_pod(site)
    provider = PartialPreviewRouteProvider(pod.router)
    assert provider.partial_names() == ["footer", "header", "hero", "text"]

    html = asyncio.run(pod.router.resolve("/preview/").build())
    assert html.count("<page-module>") == 4
    assert '<div class="header">Header</div>' in html


def test_output_path_for_directory_urls(tmp_path: Path) -> None:
    assert output_path_for(tmp_path, "/") == (tmp_path / "index.html").resolve()
    assert output_path_for(tmp_path, "/de/pages/") == (tmp_path / "de" / "pages" / "index.html").resolve()
    assert output_path_for(tmp_path, "/robots.txt") == (tmp_path / "robots.txt").resolve()
    with pytest.raises(ValueError):
        output_path_for(tmp_path, "/../escape.html")


def test_export_site_writes_every_route(site: Path, make_pod, tmp_path: Path) -> None:
    pod = make_pod(site)
    output_dir = tmp_path / "out"
    result = asyncio.run(export_site(pod, output_dir))

    assert (output_dir / "pages" / "index.html").exists()
    assert (output_dir / "de" / "pages" / "index.html").exists()
    assert (output_dir / "static" / "js" / "partials" / "hero.js").exists()
    assert (output_dir / "_page-builder" / "page-builder-ui.min.js").read_text(encoding="utf-8").startswith("(")
    assert (output_dir / "sitemap.xml").exists()
    assert len(result.pages) == 3 + 5  # three locales plus the preview pages
    assert result.total == len(pod.router.routes())


def test_cli_build_writes_site(site: Path, tmp_path: Path) -> None:
    runner = CliRunner()
    output_dir = tmp_path / "cli-out"
    result = runner.invoke(app, ["build", "--project", str(site), "--output", str(output_dir)])

    assert result.exit_code == 0, result.output
    page = (output_dir / "pages" / "index.html").read_text(encoding="utf-8")
    assert "<h1>Hello World 1!</h1>" in page


def test_cli_build_reports_failures(site: Path, tmp_path: Path) -> None:
    write_file(site, "/content/pages/broken.yaml", "partials:\n  - partial: missing\n")
    runner = CliRunner()
    result = runner.invoke(app, ["build", "--project", str(site), "--output", str(tmp_path / "out")])

    assert result.exit_code == 1
    assert "Build failed" in result.output


def test_cli_routes_lists_paths(site: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["routes", "--project", str(site)])
    assert result.exit_code == 0, result.output
    assert "/de/pages/" in result.output
    assert "/sitemap.xml" in result.output


@pytest.fixture
def preview_server(site: Path, make_pod):
    handler = make_request_handler(lambda: make_pod(site))
    with serve("127.0.0.1", 0, handler) as server:
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        host, port = server.server_address[:2]
        yield f"http://{host}:{port}"


def test_preview_server_renders_pages_on_request(site: Path, preview_server: str) -> None:
    with urllib.request.urlopen(f"{preview_server}/pages/") as response:
        assert response.status == 200
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert "<h1>Hello World 1!</h1>" in response.read().decode("utf-8")

    write_file(site, "/content/pages/index.yaml", "title: Edited\npartials: []\n")
    with urllib.request.urlopen(f"{preview_server}/pages") as response:
        assert response.geturl().endswith("/pages/")
        assert "<title>Edited</title>" in response.read().decode("utf-8")


def test_preview_server_serves_static_files_and_404s(preview_server: str) -> None:
    with urllib.request.urlopen(f"{preview_server}/static/css/main.css") as response:
        assert response.headers["Content-Type"].startswith("text/css")

    with pytest.raises(urllib.error.HTTPError) as excinfo:
        urllib.request.urlopen(f"{preview_server}/missing.html")
    assert excinfo.value.code == 404


def test_preview_server_reports_template_errors(site: Path, preview_server: str) -> None:
    write_file(site, "/content/pages/index.yaml", "partials:\n  - partial: text\n")
    write_file(site, "/views/partials/text.njk", "{{ partial.body.missing.attr }}\n")

    with pytest.raises(urllib.error.HTTPError) as excinfo:
        urllib.request.urlopen(f"{preview_server}/pages/")
    assert excinfo.value.code == 500
    assert "TemplateRenderError" in excinfo.value.read().decode("utf-8")


def test_cli_build_reports_template_errors(site: Path, tmp_path: Path) -> None:
    write_file(site, "/content/pages/index.yaml", "partials:\n  - partial: text\n")
    write_file(site, "/views/partials/text.njk", "{{ partial.body.missing.attr }}\n")
    runner = CliRunner()
    result = runner.invoke(app, ["build", "--project", str(site), "--output", str(tmp_path / "out")])

    assert result.exit_code == 1
    assert "Build failed" in result.output

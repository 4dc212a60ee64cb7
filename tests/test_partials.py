from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from pagebuilder.config import PartialPaths
from pagebuilder.errors import ConfigurationError, MissingTemplateError, TemplateRenderError
from pagebuilder.partials import InlinePartial, NamedPartial, PartialRenderer, parse_partial
from pagebuilder.resources import ResourceDeduplicator, ResourceResolver
from pagebuilder.templates import RenderContext

from conftest import EMPTY_MD5, write_file


def _renderer(pod, *, inspector: bool = False, paths: PartialPaths | None = None) -> PartialRenderer:
    doc = pod.doc("/content/pages/index.yaml")
    resources = ResourceDeduplicator(pod, ResourceResolver(doc))
    return PartialRenderer(pod, RenderContext(pod=pod, doc=doc), resources, paths=paths, inspector=inspector)


def test_parse_named_partial() -> None:
    descriptor = parse_partial({"partial": "hero", "headline": "Hi"})
    assert descriptor == NamedPartial(name="hero", fields={"headline": "Hi"})


def test_parse_inline_partial(tmp_path: Path) -> None:
    template = tmp_path / "card.njk"
    descriptor = parse_partial(
        {
            "partial": {"absolutePath": str(template), "includeInspector": False},
            "title": "Card",
        }
    )
    assert isinstance(descriptor, InlinePartial)
    assert descriptor.name == "card"
    assert descriptor.template_path == template
    assert descriptor.fields == {"title": "Card"}
    assert descriptor.include_inspector is False


def test_parse_nested_named_partial_with_inspector_opt_out() -> None:
    descriptor = parse_partial({"partial": {"partial": "hero", "includeInspector": False}})
    assert descriptor == NamedPartial(name="hero", include_inspector=False)


@pytest.mark.parametrize("raw", [{}, {"partial": ""}, {"partial": {"other": 1}}, 7, None])
def test_parse_partial_requires_name_or_path(raw) -> None:
    with pytest.raises(ConfigurationError):
        parse_partial(raw)


def test_render_named_partial_with_resources(site: Path, make_pod) -> None:
    renderer = _renderer(make_pod(site, register=False))
    html = asyncio.run(renderer.render({"partial": "hero", "headline": "Hi"}))

    assert html.splitlines() == [
        f'<link href="./../static/css/partials/hero.css?fingerprint={EMPTY_MD5}" rel="stylesheet">',
        f'<script src="./../static/js/partials/hero.js?fingerprint={EMPTY_MD5}"></script>',
        "<page-module>",
        '<div class="hero">',
        "<h1>Hi</h1>",
        "</div>",
        "</page-module>",
    ]


def test_second_render_skips_already_loaded_resources(site: Path, make_pod) -> None:
    renderer = _renderer(make_pod(site, register=False))

    async def render_twice() -> list[str]:
        return list(
            await asyncio.gather(
                renderer.render({"partial": "hero", "headline": "One"}),
                renderer.render({"partial": "hero", "headline": "Two"}),
            )
        )

    first, second = asyncio.run(render_twice())
    assert "hero.css" in first and "hero.js" in first
    assert "hero.css" not in second and "hero.js" not in second
    assert second.startswith("<page-module>")


def test_inspector_marker(site: Path, make_pod) -> None:
    renderer = _renderer(make_pod(site, register=False), inspector=True)
    html = asyncio.run(renderer.render({"partial": "text", "body": "x"}))
    assert html.splitlines()[:2] == [
        "<page-module>",
        '<page-module-inspector partial="text"></page-module-inspector>',
    ]

    html = asyncio.run(renderer.render({"partial": {"partial": "text", "includeInspector": False}}))
    assert "page-module-inspector" not in html


def test_render_inline_partial(site: Path, make_pod, tmp_path: Path) -> None:
    template = tmp_path / "inline" / "card.njk"
    template.parent.mkdir(parents=True)
    template.write_text('<div class="card">{{ partial.title }} on {{ doc.fields.title }}</div>', encoding="utf-8")
    renderer = _renderer(make_pod(site, register=False))

    html = asyncio.run(renderer.render({"partial": {"absolutePath": str(template)}, "title": "Card"}))
    assert html == '<page-module>\n<div class="card">Card on Hello</div>\n</page-module>'


def test_inline_partial_values_are_autoescaped(site: Path, make_pod, tmp_path: Path) -> None:
    template = tmp_path / "card.njk"
    template.write_text("<p>{{ partial.title }}</p>", encoding="utf-8")
    renderer = _renderer(make_pod(site, register=False))
    html = asyncio.run(renderer.render({"partial": {"absolutePath": str(template)}, "title": "<b>"}))
    assert "<p>&lt;b&gt;</p>" in html


def test_missing_inline_template(site: Path, make_pod, tmp_path: Path) -> None:
    renderer = _renderer(make_pod(site, register=False))
    with pytest.raises(MissingTemplateError):
        asyncio.run(renderer.render({"partial": {"absolutePath": str(tmp_path / "nope.njk")}}))


def test_missing_named_template(site: Path, make_pod) -> None:
    renderer = _renderer(make_pod(site, register=False))
    with pytest.raises(MissingTemplateError):
        asyncio.run(renderer.render({"partial": "does-not-exist"}))


def test_custom_partial_paths(site: Path, make_pod) -> None:
    write_file(site, "/templates/blocks/quote.html", "<blockquote>{{ partial.text }}</blockquote>\n")
    write_file(site, "/dist/styles/quote.css", "")
    paths = PartialPaths(
        css="/dist/styles/{name}.css",
        js="/dist/scripts/{name}.js",
        view="/templates/blocks/{name}.html",
    )
    renderer = _renderer(make_pod(site, register=False), paths=paths)
    html = asyncio.run(renderer.render({"partial": "quote", "text": "Hi"}))

    assert f"./../static/styles/quote.css?fingerprint={EMPTY_MD5}" in html
    assert "<script" not in html
    assert "<blockquote>Hi</blockquote>" in html


def test_builtin_partial_requires_view(site: Path, make_pod) -> None:
    pod = make_pod(site, register=False)
    renderer = _renderer(pod)
    (site / "views" / "partials" / "footer.njk").unlink()

    assert asyncio.run(renderer.render_builtin("footer", pod.default_locale)) == ""
    header = asyncio.run(renderer.render_builtin("header", pod.locale("de")))
    assert '<div class="header">Kopf</div>' in header


def test_partial_paths_require_name_placeholder() -> None:
    with pytest.raises(ValueError):
        PartialPaths(css="/dist/css/partials.css")


def test_template_errors_are_wrapped(site: Path, make_pod, tmp_path: Path) -> None:
    write_file(site, "/views/partials/text.njk", "<p>{{ partial.body.missing.attr }}</p>\n")
    write_file(site, "/views/partials/broken.njk", "<p>{% if %}</p>\n")
    renderer = _renderer(make_pod(site, register=False))

    with pytest.raises(TemplateRenderError, match="text.njk"):
        asyncio.run(renderer.render({"partial": "text"}))
    with pytest.raises(TemplateRenderError, match="broken.njk"):
        asyncio.run(renderer.render({"partial": "broken"}))

    inline = tmp_path / "inline.njk"
    inline.write_text("{{ partial.nothing.here }}", encoding="utf-8")
    with pytest.raises(TemplateRenderError):
        asyncio.run(renderer.render({"partial": {"absolutePath": str(inline)}}))

from __future__ import annotations

from pagebuilder.beautify import beautify, strip_blank_lines


def test_beautify_indents_by_nesting_depth() -> None:
    html = "\n".join(
        [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '    <meta charset="utf-8">',
            "<title>Hi</title>",
            "</head>",
            "<body>",
            '<div class="main">',
            "<page-module>",
            "<p>Text <b>bold</b></p>",
            "</page-module>",
            "</div>",
            "</body>",
            "</html>",
        ]
    )
    assert beautify(html) == "\n".join(
        [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "  <head>",
            '    <meta charset="utf-8">',
            "    <title>Hi</title>",
            "  </head>",
            "  <body>",
            '    <div class="main">',
            "      <page-module>",
            "        <p>Text <b>bold</b></p>",
            "      </page-module>",
            "    </div>",
            "  </body>",
            "</html>",
        ]
    )


def test_beautify_respects_indent_size() -> None:
    assert beautify("<div>\n<span>x</span>\n</div>", indent_size=4) == "<div>\n    <span>x</span>\n</div>"


def test_beautify_leaves_preformatted_and_script_content_alone() -> None:
    html = "\n".join(
        [
            "<div>",
            "<pre>",
            "  keep   this",
            "</pre>",
            "<script>",
            "    if (a < b && c > d) { run('</div>'); }",
            "</script>",
            "<span>after</span>",
            "</div>",
        ]
    )
    assert beautify(html).splitlines() == [
        "<div>",
        "  <pre>",
        "  keep   this",
        "</pre>",
        "  <script>",
        "    if (a < b && c > d) { run('</div>'); }",
        "</script>",
        "  <span>after</span>",
        "</div>",
    ]


def test_beautify_does_not_touch_attribute_values() -> None:
    line = "<link href=\"a.css?x=1&amp;y=2\" rel=\"preload\" as=\"style\" onload=\"this.onload=null;this.rel='stylesheet'\">"
    html = f"<head>\n{line}\n<script src=\"a.js\" defer></script>\n</head>"
    assert beautify(html).splitlines() == [
        "<head>",
        f"  {line}",
        '  <script src="a.js" defer></script>',
        "</head>",
    ]


def test_beautify_ignores_tags_inside_comments() -> None:
    html = "<div>\n<!-- <section> -->\n<p>x</p>\n</div>"
    assert beautify(html) == "<div>\n  <!-- <section> -->\n  <p>x</p>\n</div>"


def test_strip_blank_lines_keeps_preformatted_blank_lines() -> None:
    html = "<div>\n\n   \n<pre>line one\n\nline three</pre>\n\n</div>"
    assert strip_blank_lines(html) == "<div>\n<pre>line one\n\nline three</pre>\n</div>"


def test_beautify_tracks_comments_across_lines() -> None:
    html = "\n".join(
        [
            "<div>",
            "<!-- a commented",
            "<pre> and <script>",
            "-->",
            "<section>",
            "<p>x</p>",
            "</section>",
            "</div>",
        ]
    )
    assert beautify(html).splitlines() == [
        "<div>",
        "  <!-- a commented",
        "  <pre> and <script>",
        "  -->",
        "  <section>",
        "    <p>x</p>",
        "  </section>",
        "</div>",
    ]


def test_strip_blank_lines_ignores_pre_inside_comments() -> None:
    html = "<div>\n<!--\n<pre>\n-->\n\n<p>x</p>\n</div>"
    assert strip_blank_lines(html) == "<div>\n<!--\n<pre>\n-->\n<p>x</p>\n</div>"

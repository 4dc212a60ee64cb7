from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable

import pytest

from pagebuilder.builder import PageBuilder
from pagebuilder.pod import Pod

EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"

SITE_CONFIG = """
locales: [en, de, fr]
default_locale: en
static_routes:
  - path: /static/
    static_dir: /dist/
environments:
  default:
    host: localhost
  staging:
    host: staging.example.com
    scheme: https
  dev:
    dev: true
page_builder:
  head:
    siteName: Example Site
    stylesheets:
      - static: /dist/css/main.css
      - https://fonts.example.com/css?family=Roboto&display=swap
    scripts:
      - static: /dist/js/main.js
"""

COLLECTION = """
$path: /pages/{base}/
$localization:
  path: /{locale}/pages/{base}/
"""

INDEX = """
title: Hello
title@de: Hallo
partials:
  - partial: hero
    headline: Hello World 1!
    headline@de: Hallo Welt 1!
  - partial: hero
    headline: Hello World 2!
"""

FILES = {
    "/pagebuilder.yml": SITE_CONFIG,
    "/content/pages/_collection.yaml": COLLECTION,
    "/content/pages/index.yaml": INDEX,
    "/views/partials/hero.njk": '<div class="hero">\n<h1>{{ partial.headline }}</h1>\n</div>\n',
    "/views/partials/text.njk": '<div class="text">{{ partial.body }}</div>\n',
    "/views/partials/header.njk": '<div class="header">{{ partial.label }}</div>\n',
    "/views/partials/footer.njk": '<div class="footer">Footer</div>\n',
    "/content/partials/header.yaml": "label: Header\nlabel@de: Kopf\n",
    "/dist/css/main.css": "",
    "/dist/js/main.js": "",
    "/dist/css/partials/hero.css": "",
    "/dist/js/partials/hero.js": "",
}


def write_file(root: Path, pod_path: str, text: str) -> Path:
    target = root / pod_path.lstrip("/")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
    return target


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small site with a localized page collection, partials, and static assets."""
    root = tmp_path / "site"
    for pod_path, text in FILES.items():
        write_file(root, pod_path, text)
    return root


@pytest.fixture
def make_pod() -> Callable[..., Pod]:
    def factory(root: Path, env_name: str | None = None, *, register: bool = True) -> Pod:
        pod = Pod(root, env_name=env_name)
        if register:
            PageBuilder.register(pod)
        return pod

    return factory

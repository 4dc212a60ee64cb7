"""Cosmetic clean-up of assembled HTML.

Lines are re-indented by element depth; they are never split or joined.
Content of ``pre``, ``textarea``, ``script`` and ``style`` elements is
emitted verbatim, and attribute text is never rewritten.
"""

from __future__ import annotations

from dataclasses import dataclass
from html.parser import HTMLParser

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)
RAW_TEXT_ELEMENTS = frozenset({"pre", "textarea", "script", "style"})
PREFORMATTED_ELEMENTS = frozenset({"pre", "textarea"})


@dataclass
class _LineInfo:
    leading: int = 0
    delta: int = 0
    seen_other: bool = False


class _LineScanner(HTMLParser):
    """Record, per source line, how the element depth changes."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.lines: dict[int, _LineInfo] = {}
        self.verbatim: set[int] = set()
        self.preformatted: set[int] = set()
        self._raw: list[tuple[str, int]] = []

    def _line(self, number: int | None = None) -> _LineInfo:
        number = number if number is not None else self.getpos()[0]
        return self.lines.setdefault(number, _LineInfo())

    def _content(self) -> None:
        self._line().seen_other = True

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._content()
        if tag in VOID_ELEMENTS:
            return
        self._line().delta += 1
        if tag in RAW_TEXT_ELEMENTS:
            self._raw.append((tag, self.getpos()[0]))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._content()

    def handle_endtag(self, tag: str) -> None:
        if tag in VOID_ELEMENTS:
            return
        info = self._line()
        if not info.seen_other:
            info.leading += 1
        info.delta -= 1
        if self._raw and self._raw[-1][0] == tag:
            _, opened = self._raw.pop()
            closed = self.getpos()[0]
            inner = range(opened + 1, closed + 1)
            self.verbatim.update(inner)
            if tag in PREFORMATTED_ELEMENTS:
                self.preformatted.update(inner)

    def handle_data(self, data: str) -> None:
        start = self.getpos()[0]
        for offset, chunk in enumerate(data.split("\n")):
            if chunk.strip():
                self._line(start + offset).seen_other = True

    def handle_comment(self, data: str) -> None:
        self._content()

    def handle_decl(self, decl: str) -> None:
        self._content()


def _scan(lines: list[str]) -> _LineScanner:
    scanner = _LineScanner()
    scanner.feed("\n".join(lines))
    scanner.close()
    return scanner


def strip_blank_lines(html: str) -> str:
    """Drop empty and whitespace-only lines outside preformatted content."""
    lines = html.split("\n")
    scanner = _scan(lines)
    kept = [
        line
        for number, line in enumerate(lines, start=1)
        if line.strip() or number in scanner.preformatted
    ]
    return "\n".join(kept)


def beautify(html: str, *, indent_size: int = 2) -> str:
    """Re-indent ``html`` with ``indent_size`` spaces per nesting level."""
    unit = " " * indent_size
    lines = html.split("\n")
    scanner = _scan(lines)
    depth = 0
    output: list[str] = []
    for number, line in enumerate(lines, start=1):
        info = scanner.lines.get(number, _LineInfo())
        if number in scanner.verbatim:
            output.append(line)
        else:
            output.append(f"{unit * max(depth - info.leading, 0)}{line.strip()}")
        depth = max(depth + info.delta, 0)
    return "\n".join(output)

"""Assembly of the <body> element."""

from __future__ import annotations

import inspect
from html import escape

from .errors import ConfigurationError
from .scope import BuildScope, render_in_order

MAIN_OPEN = '<div class="main">'
MAIN_CLOSE = "</div>"


class BodyAssembler:
    """Build the document body: prepends, header, partials, footer, appends."""

    def __init__(self, scope: BuildScope) -> None:
        self._scope = scope

    async def body_tag(self) -> str:
        class_option = self._scope.options.body.class_
        if not class_option:
            return "<body>"
        if callable(class_option):
            class_name = class_option(self._scope.context)
            if inspect.isawaitable(class_name):
                class_name = await class_name
        else:
            class_name = class_option
        if not class_name:
            return "<body>"
        return f'<body class="{escape(str(class_name), quote=True)}">'

    async def render_partials(self) -> str:
        partials = self._scope.fields.resolve("partials") or []
        if not isinstance(partials, list):
            raise ConfigurationError(
                f"The 'partials' field of {self._scope.doc!r} must be a list, got {type(partials).__name__}."
            )
        rendered = await render_in_order(self._scope.partials.render(item) for item in partials)
        return "\n".join(rendered)

    async def build(self) -> str:
        scope = self._scope
        body = scope.options.body
        locale = scope.doc.locale

        parts = [await self.body_tag()]
        if body.prepend:
            parts.append(await scope.render_files(body.prepend))
        parts.append(MAIN_OPEN)
        if scope.fields.resolve("header") is not False:
            parts.append(await scope.partials.render_builtin("header", locale, scope.options.header))
        parts.append(await self.render_partials())
        if scope.fields.resolve("footer") is not False:
            parts.append(await scope.partials.render_builtin("footer", locale, scope.options.footer))
        parts.append(MAIN_CLOSE)
        if body.extra:
            parts.append(await scope.render_files(body.extra))
        parts.append("</body>")
        return "\n".join(part for part in parts if part)

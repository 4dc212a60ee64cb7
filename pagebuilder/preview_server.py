"""Development server that renders routes on request."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import TYPE_CHECKING, Callable, Iterator
from urllib.parse import urlsplit

from .errors import PageBuilderError

if TYPE_CHECKING:
    from .pod import Pod

logger = logging.getLogger(__name__)


class _ThreadingHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True


def make_request_handler(pod_factory: Callable[[], "Pod"]) -> type[BaseHTTPRequestHandler]:
    """Create a handler that opens a fresh pod per request so content edits show up immediately."""

    class PreviewRequestHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802 - http.server naming
            self._respond(include_body=True)

        def do_HEAD(self) -> None:  # noqa: N802 - http.server naming
            self._respond(include_body=False)

        def _respond(self, *, include_body: bool) -> None:
            path = urlsplit(self.path).path or "/"
            try:
                pod = pod_factory()
                route = pod.router.resolve(path)
                if route is None and not path.endswith("/") and pod.router.resolve(f"{path}/"):
                    self.send_response(HTTPStatus.MOVED_PERMANENTLY)
                    self.send_header("Location", f"{path}/")
                    self.end_headers()
                    return
                if route is None:
                    message = f"No route for {path}\n".encode()
                    self._send(HTTPStatus.NOT_FOUND, message, "text/plain; charset=utf-8", include_body)
                    return
                body = asyncio.run(route.build())
            except PageBuilderError as exc:
                logger.error("Failed to render %s: %s", path, exc)
                self._send(
                    HTTPStatus.INTERNAL_SERVER_ERROR,
                    f"{type(exc).__name__}: {exc}\n".encode(),
                    "text/plain; charset=utf-8",
                    include_body,
                )
                return
            payload = body if isinstance(body, bytes) else body.encode("utf-8")
            self._send(HTTPStatus.OK, payload, route.content_type, include_body)

        def _send(self, status: HTTPStatus, payload: bytes, content_type: str, include_body: bool) -> None:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.send_header("Cache-Control", "no-store")
            self.end_headers()
            if include_body:
                self.wfile.write(payload)

        def log_message(self, format: str, *args: object) -> None:  # noqa: A002
            logger.debug("%s - %s", self.address_string(), format % args)

    return PreviewRequestHandler


@contextlib.contextmanager
def serve(
    host: str,
    port: int,
    handler: type[BaseHTTPRequestHandler],
) -> Iterator[ThreadingHTTPServer]:
    """Context manager that creates and cleans up the HTTP server."""
    server = _ThreadingHTTPServer((host, port), handler)
    try:
        yield server
    finally:
        try:
            server.shutdown()
        finally:
            server.server_close()

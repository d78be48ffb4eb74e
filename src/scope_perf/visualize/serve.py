"""HTTP serving of rendered chart pages.

``ChartServer`` is an explicitly constructed server: it is given the bind
address and the pages to render, and owns its own ``ThreadingHTTPServer``.
There is no module-level route registry.
"""

from __future__ import annotations

import http.server
import logging
from typing import Sequence

from scope_perf.visualize.timings import ChartPage, render_page

logger = logging.getLogger(__name__)


def parse_bind(addr: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts.

    Examples
    --------
    >>> parse_bind("localhost:8080")
    ('localhost', 8080)
    >>> parse_bind(":9000")
    ('', 9000)
    """

    host, sep, port = str(addr).rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid bind address (expected host:port): {addr!r}")
    return host.strip("[]"), int(port)


class ChartServer:
    """Serve one HTML page of charts at ``/``.

    Parameters
    ----------
    address : str
        ``host:port`` to bind to; port ``0`` picks a free port.
    pages : sequence of ChartPage
        Charts rendered into the page.
    """

    def __init__(self, address: str, pages: Sequence[ChartPage], *, title: str = "Scope timings") -> None:
        self._body = render_page(pages, title=title).encode("utf-8")
        body = self._body

        class _Handler(http.server.BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                if self.path.split("?", 1)[0] not in ("/", "/index.html"):
                    self.send_error(404, "Not Found")
                    return
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, format: str, *args: object) -> None:  # noqa: A002
                logger.debug("%s - %s", self.address_string(), format % args)

        self._httpd = http.server.ThreadingHTTPServer(parse_bind(address), _Handler)

    @property
    def url(self) -> str:
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}/"

    def serve_forever(self) -> None:
        """Block serving requests until ``shutdown`` is called or Ctrl+C."""

        logger.info("Serving charts page at %s", self.url)
        try:
            self._httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Stopping chart server")

    def shutdown(self) -> None:
        self._httpd.shutdown()

    def close(self) -> None:
        self._httpd.server_close()

    def __enter__(self) -> "ChartServer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

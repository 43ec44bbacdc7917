"""
Callback HTTP Server
====================
Minimal static file server used to catch OAuth redirects on localhost.

One listener thread runs the accept loop; every accepted connection is
handled on its own thread, so requests may be processed concurrently and in
any order. Each request is first shown to a caller-supplied hook (which
typically pulls an authorization code out of the query string), then served
from the root directory if it names an allowlisted file.
"""

import logging
import os
import shutil
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, NamedTuple, Optional, Tuple
from urllib.parse import parse_qs, unquote, urlsplit

from ..config.constants import (
    CALLBACK_BUFFER_SIZE,
    CALLBACK_INDEX_FILES,
    CALLBACK_MIME_TYPES,
)

logger = logging.getLogger(__name__)


class CallbackRequest(NamedTuple):
    """Incoming request as seen by the on_request hook."""
    method: str
    path: str
    query: Dict[str, str]
    headers: Dict[str, str]
    client_address: Tuple[str, int]


class _CallbackHandler(BaseHTTPRequestHandler):

    server: "_CallbackHTTPServer"

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        self._handle()

    def do_HEAD(self) -> None:
        self._handle(send_body=False)

    def _handle(self, send_body: bool = True) -> None:
        url = urlsplit(self.path)
        request = CallbackRequest(
            method=self.command,
            path=url.path,
            query={key: values[0] for key, values in parse_qs(url.query).items()},
            headers=dict(self.headers.items()),
            client_address=self.client_address,
        )

        try:
            self.server.on_request(request)
        except Exception as e:
            logger.error(f"Callback hook failed for {url.path}: {e}", exc_info=True)

        filename = self.server.resolve(url.path)
        mime = None
        if filename and os.path.isfile(filename):
            mime = CALLBACK_MIME_TYPES.get(os.path.splitext(filename)[1].lower())

        if mime is None:
            self.send_error(404)
            return

        self._send_file(filename, mime, send_body)

    def _send_file(self, filename: str, mime: str, send_body: bool) -> None:
        try:
            source = open(filename, 'rb')
            stat = os.fstat(source.fileno())
        except OSError as e:
            logger.error(f"Cannot open {filename}: {e}")
            self.send_error(500)
            return

        with source:
            self.send_response(200)
            self.send_header('Content-Type', mime)
            self.send_header('Content-Length', str(stat.st_size))
            self.send_header('Last-Modified', self.date_time_string(stat.st_mtime))
            self.end_headers()

            if not send_body:
                return

            try:
                shutil.copyfileobj(source, self.wfile, CALLBACK_BUFFER_SIZE)
            except OSError as e:
                # Headers are out already, all we can do is drop the connection
                logger.error(f"Streaming {filename} failed: {e}")
                self.close_connection = True


class _CallbackHTTPServer(ThreadingHTTPServer):

    daemon_threads = True
    # Stop abandons in-flight requests instead of joining them
    block_on_close = False

    def __init__(self, address, root: str, on_request: Callable[[CallbackRequest], None]):
        self.root = os.path.realpath(root)
        self.on_request = on_request
        super().__init__(address, _CallbackHandler)

    def resolve(self, path: str) -> Optional[str]:
        """Map a URL path to a file under root, None if it escapes root."""
        filename = unquote(path).lstrip('/')

        if not filename:
            for index_file in CALLBACK_INDEX_FILES:
                if os.path.isfile(os.path.join(self.root, index_file)):
                    filename = index_file
                    break

        try:
            resolved = os.path.realpath(os.path.join(self.root, filename))
            inside = os.path.commonpath([self.root, resolved]) == self.root
        except ValueError as e:
            # Embedded NUL bytes or paths on another drive
            logger.warning(f"Rejected unresolvable path {path!r}: {e}")
            return None
        if not inside:
            logger.warning(f"Rejected path outside of root: {path}")
            return None
        return resolved


class CallbackServer:
    """
    Local HTTP server serving one directory and reporting every request.

    Usage:
        with CallbackServer(root, 50000, on_request=handle) as server:
            webbrowser.open(auth_url)
            ...

    Args:
        root: Directory to serve
        port: Port to bind (0 picks a free one, see .port)
        on_request: Called with a CallbackRequest for every incoming request
        host: Interface to bind, '' means all interfaces
    """

    def __init__(
        self,
        root: str,
        port: int,
        on_request: Optional[Callable[[CallbackRequest], None]] = None,
        host: str = '',
    ):
        self.root = root
        self.host = host
        self._requested_port = port
        self._on_request = on_request or (lambda request: None)
        self._server: Optional[_CallbackHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._server is None:
            return self._requested_port
        return self._server.server_address[1]

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}/"

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "CallbackServer":
        """
        Bind the port and start the accept loop on a dedicated thread.

        Raises:
            OSError: If the port cannot be bound
        """
        if self._server is not None:
            return self

        self._server = _CallbackHTTPServer((self.host, self._requested_port), self.root, self._on_request)
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={'poll_interval': 0.1},
            name=f"callback-server-{self.port}",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Callback server listening on port {self.port} (root: {self.root})")
        return self

    def stop(self) -> None:
        """Stop the accept loop and close the listening socket."""
        if self._server is None:
            return

        server, thread = self._server, self._thread
        self._server = None
        self._thread = None

        server.shutdown()
        server.server_close()
        if thread is not None:
            thread.join()
        logger.info("Callback server stopped")

    def __enter__(self) -> "CallbackServer":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

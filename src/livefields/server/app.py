"""The authority process: one port, plain HTTP for assets, WebSocket for state.

``LiveFieldsServer`` creates the store and the connection registry when it
is constructed and hands both to every session it accepts.  Requests that do
not ask for a WebSocket upgrade are answered from the static directory.
"""

from __future__ import annotations

import http
import logging
from collections.abc import Mapping
from pathlib import Path
from urllib.parse import unquote, urlparse

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from livefields.core.config import DEFAULT_HOST, DEFAULT_PORT
from livefields.core.state import SharedState
from livefields.server.registry import ConnectionRegistry
from livefields.server.session import handle_session

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"
INDEX_FILE = "index.html"

_CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".js": "application/javascript",
    ".css": "text/css",
    ".json": "application/json",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".ico": "image/x-icon",
}


class LiveFieldsServer:
    """Authority server holding the shared state for all connected viewers."""

    def __init__(
        self,
        fields: Mapping[str, str],
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        static_dir: Path | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.static_dir = (static_dir or STATIC_DIR).resolve()
        self.store = SharedState(fields)
        self.registry = ConnectionRegistry()
        self._server: Server | None = None

    async def start(self) -> None:
        """Bind the port and start accepting connections.

        Raises:
            OSError: If the port cannot be bound.
        """
        self._server = await serve(
            self._handle_connection,
            self.host,
            self.port,
            process_request=self._process_request,
        )
        sockets = list(self._server.sockets)
        if sockets:
            self.port = sockets[0].getsockname()[1]

        logger.info("Server ready!")
        logger.info("  HTTP server listening on %s:%d", self.host, self.port)
        logger.info("  Serving static files from: %s", self.static_dir)
        logger.info("  Access application at: http://localhost:%d", self.port)
        logger.info("  WebSocket server attached and listening.")

    async def serve_forever(self) -> None:
        """Accept connections until cancelled.  Call after ``start()``."""
        assert self._server is not None
        await self._server.serve_forever()

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def _handle_connection(self, connection: ServerConnection) -> None:
        await handle_session(connection, self.store, self.registry)

    # ---------------------------------------------------------------
    # Static file serving
    # ---------------------------------------------------------------

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        if request.headers.get("Upgrade", "").lower() == "websocket":
            return None

        path = unquote(urlparse(request.path).path)
        logger.debug("GET %s", path)
        rel_path = path.lstrip("/") or INDEX_FILE
        if ".." in Path(rel_path).parts or "\\" in rel_path:
            return _respond(http.HTTPStatus.FORBIDDEN, b"Path traversal not allowed\n")

        filepath = self.static_dir / rel_path
        if filepath.is_dir():
            filepath = filepath / INDEX_FILE
        if not filepath.is_file():
            return _respond(http.HTTPStatus.NOT_FOUND, f"Not found: {path}\n".encode())

        ext = filepath.suffix.lower()
        content_type = _CONTENT_TYPES.get(ext, "application/octet-stream")
        return _respond(http.HTTPStatus.OK, filepath.read_bytes(), content_type)


def _respond(
    status: http.HTTPStatus,
    body: bytes,
    content_type: str = "text/plain; charset=utf-8",
) -> Response:
    headers = Headers(
        [
            ("Content-Type", content_type),
            ("Content-Length", str(len(body))),
            ("Connection", "close"),
        ]
    )
    return Response(status.value, status.phrase, headers, body)

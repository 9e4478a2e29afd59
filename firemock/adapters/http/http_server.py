"""HTTP server adapter for the Firestore-compatible REST surface.

Serves requests with Python's built-in http.server module, one thread per
request, and runs the server loop off the asyncio event loop.

Routes:
- GET  /v1/projects/{p}/databases/{d}/documents/{path}            GetDocument
- POST /v1/projects/{p}/databases/{d}/documents:batchGet           BatchGet
- POST /v1/projects/{p}/databases/{d}/documents:commit             Commit
- POST /v1/projects/{p}/databases/{d}/documents[/{parent}]:runQuery RunQuery
- POST /admin/reset, POST /admin/load                              Admin
- GET  /health                                                     Health (public)

Supports optional API key authentication via the Authorization header
(Bearer token) or X-API-Key.
"""

import asyncio
import hmac
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable
from urllib.parse import unquote, urlsplit

from firemock.adapters.http.receiver import DocumentRequestReceiver
from firemock.core.errors import StoreError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_BYTES = 1024 * 1024

API_PREFIX = "/v1/"

_STATUS_BY_CODE = {
    "INVALID_ARGUMENT": 400,
    "NOT_FOUND": 404,
    "FAILED_PRECONDITION": 409,
}


def split_resource(resource: str) -> tuple[str, str] | None:
    """Split ``projects/{p}/databases/{d}/documents[/rest]`` into root and rest.

    Returns:
        ``(database_root, relative_path)``, or None if the resource does not
        start with a database root.
    """
    parts = resource.split("/")
    if len(parts) < 5 or parts[0] != "projects" or parts[2] != "databases" or parts[4] != "documents":
        return None
    return "/".join(parts[:5]), "/".join(parts[5:])


def make_request_handler(
    receiver: DocumentRequestReceiver,
    api_key: str | None,
    require_auth: bool,
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> type[BaseHTTPRequestHandler]:
    """Factory to create a request handler class with instance-specific state.

    Dependencies are captured in the closure instead of class-level mutable
    state, so several servers can run side by side.

    Args:
        receiver: Receiver translating requests into store operations.
        api_key: Optional API key for authentication.
        require_auth: Whether authentication is required.
        max_body_bytes: Largest accepted request body.

    Returns:
        A handler class configured with the provided dependencies.
    """

    class DocumentHTTPHandler(BaseHTTPRequestHandler):
        """HTTP request handler for document and admin endpoints."""

        def _check_auth(self) -> bool:
            """Check if request is authenticated.

            Supports two authentication methods:
            1. Authorization: Bearer <api_key>
            2. X-API-Key: <api_key>

            Returns:
                True if authenticated or auth not required, False otherwise.
            """
            if not require_auth:
                return True
            if not api_key:
                return False

            auth_header = self.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                return hmac.compare_digest(auth_header[7:], api_key)

            api_key_header = self.headers.get("X-API-Key", "")
            if api_key_header:
                return hmac.compare_digest(api_key_header, api_key)

            return False

        def _route_path(self) -> str:
            return unquote(urlsplit(self.path).path)

        def do_GET(self) -> None:
            """Handle GET requests.

            Health check is public (no auth required).
            """
            path = self._route_path()
            if path == "/health":
                self._dispatch(receiver.handle_health)
                return

            if not self._check_auth():
                self._send_error(401, "UNAUTHENTICATED", "invalid or missing API key")
                return

            if path.startswith(API_PREFIX) and split_resource(path[len(API_PREFIX):]):
                name = path[len(API_PREFIX):]
                self._dispatch(lambda: receiver.handle_get_document(name))
            else:
                self._send_error(404, "NOT_FOUND", f"no route for GET {path}")

        def do_POST(self) -> None:
            """Handle POST requests, routing on the path and its ``:method`` suffix."""
            path = self._route_path()
            if path == "/health":
                self._dispatch(receiver.handle_health)
                return

            if not self._check_auth():
                self._send_error(401, "UNAUTHENTICATED", "invalid or missing API key")
                return

            body = self._read_json_body()
            if body is _NO_BODY:
                return

            if path == "/admin/reset":
                self._dispatch(receiver.handle_reset)
                return
            if path == "/admin/load":
                self._dispatch(lambda: receiver.handle_load(body))
                return

            resource, _, method = path[len(API_PREFIX):].rpartition(":")
            split = split_resource(resource) if path.startswith(API_PREFIX) else None
            if split is None:
                self._send_error(404, "NOT_FOUND", f"no route for POST {path}")
                return
            root, parent = split

            if method == "batchGet" and not parent:
                self._dispatch(lambda: receiver.handle_batch_get(body, root))
            elif method == "commit" and not parent:
                self._dispatch(lambda: receiver.handle_commit(body))
            elif method == "runQuery":
                self._dispatch(lambda: receiver.handle_run_query(body, parent, root))
            else:
                self._send_error(404, "NOT_FOUND", f"no route for POST {path}")

        def _read_json_body(self) -> Any:
            try:
                content_length = int(self.headers.get("Content-Length", 0))
            except ValueError:
                self._send_error(400, "INVALID_ARGUMENT", "invalid Content-Length")
                return _NO_BODY

            if content_length > max_body_bytes:
                # Closing with unread input resets the connection, so drain unbuffered.
                remaining = content_length
                while remaining > 0:
                    chunk = self.rfile.read(min(remaining, 65536))
                    if not chunk:
                        break
                    remaining -= len(chunk)
                self._send_error(413, "RESOURCE_EXHAUSTED", "request body too large")
                return _NO_BODY

            body = self.rfile.read(content_length) if content_length > 0 else b""
            try:
                return json.loads(body) if body else {}
            except (json.JSONDecodeError, UnicodeDecodeError):
                self._send_error(400, "INVALID_ARGUMENT", "invalid JSON body")
                return _NO_BODY

        def _dispatch(self, handler: Callable[[], Any]) -> None:
            """Run a receiver call and render its result or error."""
            try:
                result = handler()
            except StoreError as e:
                self._send_error(_STATUS_BY_CODE.get(e.code, 500), e.code, e.message)
            except ValueError as e:
                # WireFormatError and FixtureError
                self._send_error(400, "INVALID_ARGUMENT", str(e))
            except Exception as e:
                logger.error(f"Error handling request {self.command} {self.path}: {e}", exc_info=True)
                self._send_error(500, "INTERNAL", "internal server error")
            else:
                self._send_response(200, result)

        def _send_error(self, status: int, code: str, message: str) -> None:
            self._send_response(status, {"error": {"code": status, "message": message, "status": code}})

        def _send_response(self, status: int, data: Any) -> None:
            """Send JSON response."""
            payload = json.dumps(data).encode()
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format: str, *args: Any) -> None:
            """Log HTTP request."""
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return DocumentHTTPHandler


_NO_BODY = object()


class DocumentHTTPServer:
    """Document store HTTP server adapter.

    Exposes the store over a Firestore-compatible JSON API. Optionally
    requires API key authentication for every endpoint except /health.
    """

    def __init__(
        self,
        receiver: DocumentRequestReceiver,
        host: str = "127.0.0.1",
        port: int = 8080,
        api_key: str | None = None,
        require_auth: bool = False,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ):
        """Initialize the HTTP server.

        Args:
            receiver: DocumentRequestReceiver instance to handle requests.
            host: Host to listen on.
            port: Port to listen on; 0 picks a free port at start.
            api_key: Optional API key for authentication.
            require_auth: Whether to require authentication. If True,
                api_key must be provided.
            max_body_bytes: Largest accepted request body.

        Raises:
            ValueError: If authentication is required without an API key.
        """
        if require_auth and not api_key:
            raise ValueError("require_auth is set but no API key was provided")

        self.receiver = receiver
        self.host = host
        self.port = port
        self.api_key = api_key
        self.require_auth = require_auth
        self.max_body_bytes = max_body_bytes
        self.server: ThreadingHTTPServer | None = None
        self._server_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the HTTP server."""
        handler_class = make_request_handler(
            receiver=self.receiver,
            api_key=self.api_key,
            require_auth=self.require_auth,
            max_body_bytes=self.max_body_bytes,
        )
        self.server = ThreadingHTTPServer((self.host, self.port), handler_class)
        self.port = self.server.server_address[1]

        self._server_task = asyncio.create_task(self._run_server())
        if self.require_auth:
            logger.info(f"Document HTTP server listening on {self.host}:{self.port} (with API key authentication)")
        else:
            logger.info(f"Document HTTP server listening on {self.host}:{self.port}")

    async def _run_server(self) -> None:
        """Run the blocking server loop in a worker thread."""
        if not self.server:
            return
        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Document HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            await asyncio.to_thread(self.server.shutdown)
            self.server.server_close()
            self.server = None
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
            self._server_task = None
        logger.info("Document HTTP server stopped")


__all__ = ["DocumentHTTPServer", "make_request_handler", "split_resource"]

"""
=============================================================================
SERVER INITIALIZATION AND CONNECTION ORCHESTRATION
=============================================================================

Turns one handler function, Request -> Response, into a listening service.

    from tinyhttpd import init_server, Response, content_type

    def handler(request):
        return Response(200, [content_type("text/plain")], "hi")

    server = init_server(8080, handler)   # returns once listening

=============================================================================
ENTRY POINTS
=============================================================================

    init_server(port, handler)                         whole body, 0.0.0.0
    init_server_lazy(chunk_size, port, handler)        chunked,    0.0.0.0
    init_server_bind(port, host, handler)              whole body, host
    init_server_lazy_bind(chunk_size, port, host, handler)
                                                       chunked,    host
    serve(config, handler)                             anything ServerConfig
                                                       can express

Each validates its configuration, binds, starts listening, launches the
accept loop in the background and hands back an opaque Server token.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    accept thread                      connection thread (one per client)
    ─────────────                      ──────────────────────────────────
    accept() ──► Connection ──spawn──► parse request ──► handler(request)
       ▲                                                       │
       └──────────── loop                                      ▼
                                       frame body + write ◄── Response
                                              │
                                              ▼
                                        close connection

Connection threads are never joined or tracked. They share nothing but
the read-only handler and framing, so there are no locks.

=============================================================================
FAILURES
=============================================================================

    malformed request        closed silently, nothing written (DEBUG log)
    client disconnects       closed, nothing written          (DEBUG log)
    read timeout             closed silently         (only with read_timeout)
    handler raises           closed, nothing written (ERROR log, traceback)
    send fails               closed                           (WARNING log)
    bind/listen fails        OSError from the init call, no Server token

Nothing that happens on one connection reaches another connection or
the accept loop.

=============================================================================
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState
from .http import (
    Request, RequestParser, HTTPParseError,
    Response, Framing, framing_for, write_response,
)


logger = logging.getLogger(__name__)

access_logger = logging.getLogger("tinyhttpd.access")


Handler = Callable[[Request], Response]

WILDCARD_ADDRESS = "0.0.0.0"


class Server:
    """
    Opaque token for a running server.

    It offers no operations: the server runs until the process exits.
    The bound address is exposed for callers that asked for port 0.
    """

    __slots__ = ("_address",)

    def __init__(self, address: Tuple[str, int]):
        self._address = address

    @property
    def address(self) -> Tuple[str, int]:
        return self._address

    def __repr__(self) -> str:
        return f"<Server {self._address[0]}:{self._address[1]}>"


class HTTPServer:
    """
    Ties the socket server, request parser, handler and response writer
    together.

    Usage:
        server = HTTPServer(ServerConfig(port=0, chunk_size=1024), handler)
        token = server.start()
    """

    def __init__(self, config: ServerConfig, handler: Handler):
        """
        Raises:
            ValueError: If the configuration is invalid.
        """
        config.validate()

        self.config = config
        self.handler = handler
        self.framing: Framing = framing_for(config.chunk_size)

        self._socket_server = SocketServer(config)
        self._parser = RequestParser()

        # Admission control, only when a connection cap is configured
        self._slots: Optional[threading.BoundedSemaphore] = None
        if config.max_connections is not None:
            self._slots = threading.BoundedSemaphore(config.max_connections)

    def start(self) -> Server:
        """
        Bind, listen and start accepting in the background.

        Raises:
            OSError: If the socket cannot be bound or put into listen mode.
        """
        address = self._socket_server.bind()
        self._socket_server.start(self._handle_connection)
        return Server(address)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Spawn a thread for a new connection (runs on the accept thread).

        With max_connections set this blocks, and so stops accepting,
        until a running connection finishes.
        """
        if self._slots is not None:
            self._slots.acquire()

        thread = threading.Thread(
            target=self._run_connection,
            args=(conn,),
            name=f"httpd-conn-{conn.id}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            logger.error(f"[{conn.id}] Could not start connection thread: {e}")
            self._release_slot()
            conn.close()

    def _run_connection(self, conn: Connection):
        try:
            self._process_connection(conn)
        finally:
            self._release_slot()

    def _release_slot(self):
        if self._slots is not None:
            self._slots.release()

    def _process_connection(self, conn: Connection):
        """
        Process one connection: parse, call the handler, write, close.

        The connection is closed on every path out of this method.
        """
        with conn:
            start_time = time.time()

            try:
                request = self._parser.parse(conn, conn.address)
            except HTTPParseError as e:
                logger.debug(f"[{conn.id}] Request aborted: {e}")
                return
            except EOFError as e:
                logger.debug(f"[{conn.id}] Client closed connection: {e}")
                return
            except OSError as e:
                # socket.timeout included
                logger.debug(f"[{conn.id}] Read failed: {e!r}")
                return

            conn.state = ConnectionState.PROCESSING

            try:
                response = self.handler(request)
                if not isinstance(response, Response):
                    raise TypeError(
                        f"Handler returned {type(response).__name__}, expected Response"
                    )
                data = write_response(response, self.framing)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                return

            if conn.send_response(data):
                self._log_access(conn, request, response, len(data), start_time)

    def _log_access(self, conn: Connection, request: Request, response: Response,
                    sent: int, start_time: float):
        """Apache-style access log line on the tinyhttpd.access logger."""
        if not access_logger.isEnabledFor(logging.INFO):
            return

        duration_ms = (time.time() - start_time) * 1000
        timestamp = datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z")
        access_logger.info(
            f'{conn.client_ip} - - [{timestamp}] '
            f'"{request.method} {request.target}" {response.status_code} '
            f'{sent} {duration_ms:.2f}ms'
        )


# =============================================================================
# INITIALIZATION ENTRY POINTS
# =============================================================================

def serve(config: ServerConfig, handler: Handler) -> Server:
    """
    Start a server described by a ServerConfig.

    Raises:
        ValueError: Invalid configuration (e.g. chunk_size < 1).
        OSError: The socket could not be bound or put into listen mode.
    """
    return HTTPServer(config, handler).start()


def init_server(port: int, handler: Handler) -> Server:
    """Serve on all interfaces, sending bodies with Content-Length."""
    return serve(ServerConfig(host=WILDCARD_ADDRESS, port=port), handler)


def init_server_lazy(chunk_size: int, port: int, handler: Handler) -> Server:
    """
    Serve on all interfaces with chunked transfer-encoding.

    Bodies go out in chunks of at most `chunk_size` bytes, with no
    Content-Length header.
    """
    return serve(
        ServerConfig(host=WILDCARD_ADDRESS, port=port, chunk_size=chunk_size),
        handler,
    )


def init_server_bind(port: int, host: str, handler: Handler) -> Server:
    """Serve on one address, sending bodies with Content-Length."""
    return serve(ServerConfig(host=host, port=port), handler)


def init_server_lazy_bind(chunk_size: int, port: int, host: str, handler: Handler) -> Server:
    """Serve on one address with chunked transfer-encoding."""
    return serve(ServerConfig(host=host, port=port, chunk_size=chunk_size), handler)

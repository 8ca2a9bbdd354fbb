"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

This module owns the listening socket: it creates it, binds it, starts
listening, and runs the accept loop on a background thread.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create an IPv4 TCP socket
    2. setsockopt  SO_REUSEADDR, so a restarted server can rebind at once
    3. bind()      Reserve host:port          ─┐ errors here propagate to
    4. listen()    Start queueing connections ─┘ the caller, synchronously
    5. accept()    In a loop, on a daemon thread, forever

                    ┌───────────────────────┐
                    │   Listening socket    │  never sends or receives
                    └───────────┬───────────┘
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │Connection │         │Connection │         │Connection │
    └───────────┘         └───────────┘         └───────────┘
    Each accept() creates a new socket for that specific client

The split matters: bind() and listen() run in the caller's thread, so a
port that is already taken fails the initialization call itself. Only
once the socket is listening does the accept loop move to the background.

There is no shutdown. The accept loop lives as long as the process, or
until the listening socket itself fails.

=============================================================================
"""

import socket
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.bind()                    # raises OSError on failure
        server.start(handle_connection)  # returns immediately
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the real port when 0 was requested."""
        if self._socket is None:
            return (self.config.host, self.config.port)
        return self._socket.getsockname()[:2]

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return sock

    def bind(self) -> Tuple[str, int]:
        """
        Create, bind and listen.

        Returns:
            The bound address.

        Raises:
            OSError: Address in use, permission denied, bad host, ...
        """
        sock = self._create_socket()

        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise

        self._socket = sock
        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        return host, port

    def start(self, connection_handler: Callable[[Connection], None]) -> threading.Thread:
        """
        Run the accept loop on a daemon thread.

        Args:
            connection_handler: Called on the accept thread with each new
                                Connection. It must hand the connection
                                off quickly; accepting stops while it runs.
        """
        if self._socket is None:
            self.bind()

        host, port = self.address
        self._thread = threading.Thread(
            target=self._accept_loop,
            args=(connection_handler,),
            name=f"httpd-accept-{port}",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until the listening socket fails.

        A client that resets before accept() returns only costs one
        iteration; any other socket error ends the loop.
        """
        try:
            while True:
                try:
                    client_socket, client_address = self._socket.accept()
                except ConnectionAbortedError:
                    continue
                except OSError as e:
                    logger.error(f"Accept error, server stopped: {e}")
                    break

                logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    buffer_size=self.config.buffer_size,
                    timeout=self.config.read_timeout,
                    max_line_length=self.config.max_line_length,
                )

                connection_handler(conn)
        finally:
            self._cleanup()

    def _cleanup(self):
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        logger.info("Socket server stopped")

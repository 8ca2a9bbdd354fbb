"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

    socket_server.py  Listening socket and background accept loop
    connection.py     Accepted socket wrapper and the line reader

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState, LineReader, LineTooLongError

__all__ = [
    "SocketServer",     # Binds, listens, accepts
    "Connection",       # One client socket
    "ConnectionState",  # Lifecycle enum
    "LineReader",       # Line and exact-length reads over a byte stream
    "LineTooLongError",
]

"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket with the small, blocking,
line-oriented API the request parser needs.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

A single recv() may return half a request line, or a request line plus
three headers plus part of the body. HTTP/1.1 gives us two delimiters to
recover the message boundaries:

    GET /api/users?page=1 HTTP/1.1\r\n      ← one line
    Host: localhost:8080\r\n                 ← one line per header
    Content-Length: 5\r\n
    \r\n                                     ← empty line: headers done
    hello                                    ← exactly Content-Length bytes

So the reader offers exactly two operations:

    read_line()    everything up to the next line terminator
    read_exact(n)  exactly n bytes, however many recv() calls it takes

Both sit on a buffered file object (socket.makefile) so bytes that arrive
early are kept for the next call instead of being lost.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
              │              │             │           ▲
              └──────────────┴─────────────┴───────────┘
                       (any failure closes the connection)

There is no keep-alive state: every connection carries exactly one
request and one response.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional
import uuid


logger = logging.getLogger(__name__)


CRLF = b"\r\n"

# Largest single read issued for a body. A declared Content-Length is
# untrusted, so memory grows only as bytes actually arrive.
READ_STEP = 64 * 1024


class LineTooLongError(ValueError):
    """Raised when a line exceeds the reader's length limit."""


class LineReader:
    """
    Reads terminator-delimited text lines and raw byte runs from a stream.

    The stream is any blocking binary file object: a socket.makefile("rb")
    in production, an io.BytesIO in tests.

    End of stream is never reported as an empty line. It raises EOFError,
    because for an HTTP request a missing line is always a protocol failure.
    """

    def __init__(self, stream: BinaryIO, max_line_length: int = 64 * 1024):
        self.stream = stream
        self.max_line_length = max_line_length

    def read_line(self) -> str:
        """
        Read one line with its terminator removed.

        The terminator is CRLF. A bare LF is accepted as well.

        Returns:
            The decoded line, possibly empty.

        Raises:
            EOFError: Stream ended before a complete line arrived.
            LineTooLongError: No terminator within max_line_length bytes.
        """
        raw = self.stream.readline(self.max_line_length + 1)

        if not raw.endswith(b"\n"):
            if len(raw) > self.max_line_length:
                raise LineTooLongError(
                    f"Line exceeds {self.max_line_length} bytes"
                )
            raise EOFError("Stream ended inside a line" if raw else "Stream ended")

        if raw.endswith(CRLF):
            raw = raw[:-2]
        else:
            raw = raw[:-1]

        return raw.decode("utf-8", errors="replace")

    def read_exact(self, count: int) -> bytes:
        """
        Read exactly `count` bytes, blocking until they have all arrived.

        Raises:
            EOFError: Stream ended after fewer than `count` bytes.
        """
        data = bytearray()
        while len(data) < count:
            chunk = self.stream.read(min(count - len(data), READ_STEP))
            if not chunk:
                raise EOFError(
                    f"Stream ended after {len(data)} of {count} body bytes"
                )
            data += chunk
        return bytes(data)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and debugging."""
    NEW = "new"                # Just accepted
    READING = "reading"        # Parsing the request
    PROCESSING = "processing"  # Handler is running
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a single accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log correlation.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        timeout: Per-read timeout in seconds. None blocks forever.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = None
    max_line_length: int = 64 * 1024

    _stream: Optional[BinaryIO] = field(default=None, repr=False)
    reader: Optional[LineReader] = field(default=None, repr=False)

    def __post_init__(self):
        # settimeout(None) puts the socket in plain blocking mode
        self.socket.settimeout(self.timeout)
        self._stream = self.socket.makefile("rb", buffering=self.buffer_size)
        self.reader = LineReader(self._stream, self.max_line_length)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> str:
        """Read one request line. See LineReader.read_line."""
        self.state = ConnectionState.READING
        return self.reader.read_line()

    def read_exact(self, count: int) -> bytes:
        """Read exactly `count` body bytes. See LineReader.read_exact."""
        self.state = ConnectionState.READING
        return self.reader.read_exact(count)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Uses sendall() so partial writes are retried until everything is
        out or the peer goes away.

        Returns:
            True if the send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR) sends FIN, so the client sees end of response
        2. drain briefly, so unread request bytes do not turn into a RST
           that could destroy the response before the client reads it
        3. release the buffered stream and the socket
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.settimeout(0.5)
            drained = 0
            while drained < 64 * 1024:
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # socket.timeout is an OSError too

        try:
            self._stream.close()
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

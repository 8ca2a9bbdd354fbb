"""
pytest configuration and fixtures.
"""

import socket
from typing import Callable, List, Tuple

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyhttpd import ServerConfig, serve
from tinyhttpd.http import Request, Response


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + b"Content-Length: %d\r\n" % len(body)
        + b"\r\n"
        + body
    )


def decode_chunked(stream: bytes) -> Tuple[bytes, List[bytes]]:
    """
    Decode a chunked body the way a client would.

    Returns the reassembled body and the list of data chunks. Fails the
    test if the stream is not terminated by "0\\r\\n\\r\\n".
    """
    chunks = []
    rest = stream
    while True:
        size_line, sep, rest = rest.partition(b"\r\n")
        assert sep, f"missing chunk size terminator in {stream!r}"
        size = int(size_line, 16)
        if size == 0:
            assert rest == b"\r\n", f"bad trailer in {stream!r}"
            return b"".join(chunks), chunks
        chunks.append(rest[:size])
        assert rest[size:size + 2] == b"\r\n", f"bad chunk terminator in {stream!r}"
        rest = rest[size + 2:]


def exchange(address: Tuple[str, int], raw: bytes, half_close: bool = True,
             timeout: float = 5.0) -> bytes:
    """
    Send raw request bytes and read the reply until the server closes.

    With half_close the client signals end of request data with FIN, so
    the server never resets the connection on unread input.
    """
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(raw)
        if half_close:
            sock.shutdown(socket.SHUT_WR)

        received = b""
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                return received
            received += chunk


def split_response(data: bytes) -> Tuple[str, List[str], bytes]:
    """Split raw response bytes into (status line, header lines, body)."""
    head, sep, body = data.partition(b"\r\n\r\n")
    assert sep, f"no header terminator in {data!r}"
    lines = head.decode("utf-8").split("\r\n")
    return lines[0], lines[1:], body


def echo_handler(request: Request) -> Response:
    """Return the request body, tagged with method and path headers."""
    return Response(
        200,
        [("X-Method", request.method), ("X-Path", request.path)],
        request.body,
    )


@pytest.fixture
def start_server() -> Callable[..., Tuple[str, int]]:
    """
    Start a server on 127.0.0.1 with an OS-assigned port.

    Usage:
        address = start_server(handler, chunk_size=4)
    """
    def _start(handler=echo_handler, **config_overrides) -> Tuple[str, int]:
        config = ServerConfig(host="127.0.0.1", port=0, **config_overrides)
        return serve(config, handler).address

    return _start

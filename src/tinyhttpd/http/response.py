"""
=============================================================================
HTTP RESPONSE WRITER
=============================================================================

A handler returns a Response; the writer turns it into bytes:

    Response(status_code=200,            HTTP/1.1 200 OK\r\n
             headers=[content_type(      Connection: close\r\n
                 "text/plain")],   ───►  Content-Type: text/plain\r\n
             body="hi")                  Content-Length: 2\r\n       ← framing
                                         \r\n
                                         hi

The order is fixed:

    1. status line, reason from the status table ("-" when unknown)
    2. "Connection: close" - keep-alive is never offered
    3. the handler's headers, in the order given
    4. the framing header (Content-Length or Transfer-Encoding)
    5. an empty line
    6. the framed body, with no extra terminator

Handlers must not set Content-Length or Transfer-Encoding themselves.
The writer does not check; a handler that does so sends the header twice.

=============================================================================
HEADER HELPERS
=============================================================================

    add_cache(3600)            ("Cache-Control", "max-age=3600")
    NO_CACHE                   ("Cache-Control", "no-cache")
    content_type("text/html")  ("Content-Type", "text/html")

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List, Tuple, Union

from .framing import Framing, WholeBody, frame_body
from .status_codes import reason_phrase


Header = Tuple[str, str]


@dataclass
class Response:
    """
    An HTTP response produced by a handler.

    Attributes:
        status_code: Numeric status, e.g. 200
        headers: (name, value) pairs, written in order
        body: str (sent as UTF-8) or bytes
    """

    status_code: int = 200
    headers: List[Header] = field(default_factory=list)
    body: Union[str, bytes] = b""

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"HTTP/1.1 {self.status_code} {reason_phrase(self.status_code)}"


def add_cache(max_age: int) -> Header:
    """Cache-Control header allowing caching for `max_age` seconds."""
    return ("Cache-Control", f"max-age={max_age}")


NO_CACHE: Header = ("Cache-Control", "no-cache")


def content_type(mime: str) -> Header:
    """Content-Type header, e.g. content_type("text/plain")."""
    return ("Content-Type", mime)


def render_head(response: Response, framing_headers: List[Header]) -> bytes:
    """
    Render the status line and header block, blank line included.

    Header lines are joined with CRLF and the block ends with CRLF CRLF.
    """
    lines = [response.status_line, "Connection: close"]

    for name, value in list(response.headers) + list(framing_headers):
        lines.append(f"{name}: {value}")

    lines.append("")
    return "\r\n".join(lines).encode("utf-8") + b"\r\n"


def write_response(response: Response, framing: Framing = WholeBody()) -> bytes:
    """
    Serialize a response into the exact bytes to put on the wire.

    Args:
        response: The handler's response.
        framing: WholeBody() or Chunked(size), chosen at server creation.

    Returns:
        Status line, headers, blank line and framed body.
    """
    framing_headers, payload = frame_body(framing, response.body)
    return render_head(response, framing_headers) + payload

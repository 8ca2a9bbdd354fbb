"""
=============================================================================
HTTP REQUEST ASSEMBLER
=============================================================================

Turns the bytes of one HTTP/1.1 request into an immutable Request value.

=============================================================================
STATE MACHINE
=============================================================================

    ┌──────────────────┐  3 tokens, HTTP/1.1,  ┌───────────────┐
    │ AwaitRequestLine │──── valid target ────►│ AwaitHeaders  │◄──┐
    └────────┬─────────┘                       └──┬─────────┬──┘   │
             │                          empty line│         │ "Name: value"
             │                                    ▼         └──────┘
             │                             ┌─────────────┐
             │                             │  AwaitBody  │  Content-Length
             │                             └──────┬──────┘  bytes, or none
             │                                    ▼
             │                             ┌─────────────┐
             │                             │    Done     │──► handler
             │                             └─────────────┘
             ▼
        ┌─────────┐
        │ Aborted │  ◄── any malformed line, end of stream or I/O error
        └─────────┘

Aborted is never answered. The connection is closed without a single
byte written back, so a broken client can never receive a half-built
response.

=============================================================================
WHAT IS (AND IS NOT) CHECKED
=============================================================================

    Request line   exactly three whitespace-separated tokens
                   version token exactly "HTTP/1.1"
                   target must be a valid URI-reference (RFC 3986)
    Headers        every line must contain ':'
                   Content-Length (any case) must be a decimal integer
    Methods        NOT validated - any token is passed to the handler
    Body           exactly Content-Length bytes; empty without the header
                   chunked request bodies are not decoded

=============================================================================
"""

import io
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import SplitResult, urlsplit

from ..core.connection import LineReader, LineTooLongError
from .query import query_to_arguments


HTTP_VERSION = "HTTP/1.1"

Header = Tuple[str, str]


class HTTPParseError(ValueError):
    """
    Raised when a request cannot be assembled.

    The connection that produced it is closed without a response.
    """


@dataclass(frozen=True)
class Request:
    """
    A parsed HTTP request.

    Attributes:
        method:   Request method token, e.g. "GET" (not validated)
        uri:      Parsed request target (scheme-less references allowed)
        headers:  (name, value) pairs in arrival order, duplicates kept,
                  names in their original case
        body:     Exactly Content-Length bytes, or b"" without the header
        target:   The request target exactly as sent
        client_address: (ip, port) of the peer, when known
    """

    method: str
    uri: SplitResult
    headers: Tuple[Header, ...] = ()
    body: bytes = b""
    target: str = ""
    client_address: tuple = field(default=("", 0), compare=False)

    @property
    def path(self) -> str:
        return self.uri.path

    @property
    def query(self) -> str:
        return self.uri.query

    @property
    def arguments(self) -> List[Tuple[str, str]]:
        """Decoded query arguments, see query_to_arguments."""
        return query_to_arguments(self.uri.query)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get the first value of a header (case-insensitive lookup).

        Example:
            request.get_header("content-type")  # matches "Content-Type"
        """
        wanted = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == wanted:
                return value
        return default

    def get_all_headers(self, name: str) -> List[str]:
        """Get every value of a repeated header, in arrival order."""
        wanted = name.lower()
        return [value for header_name, value in self.headers
                if header_name.lower() == wanted]


# =============================================================================
# URI-REFERENCE VALIDATION
# =============================================================================
#
# urlsplit() accepts almost anything, so the character repertoire of
# RFC 3986 is checked first: unreserved, reserved and %XX escapes only.
# Square brackets are only legal around an IP-literal host, e.g.
# "http://[::1]:8080/", never in a path, query or fragment.
#
_URI_REFERENCE_PATTERN = re.compile(
    r"^(?:[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=]|%[0-9A-Fa-f]{2})*$"
)

_IP_LITERAL_AUTHORITY_PATTERN = re.compile(
    r"^(?:[^\[\]@]*@)?\[[0-9A-Za-z:.\-_~!$&'()*+,;=]+\](?::[0-9]*)?$"
)

_DIGITS_PATTERN = re.compile(r"^[0-9]+$")


def parse_uri_reference(target: str) -> SplitResult:
    """
    Parse a request target as a URI-reference.

    Raises:
        HTTPParseError: If the target contains characters outside RFC 3986,
                        a broken percent escape, or cannot be split.
    """
    if not _URI_REFERENCE_PATTERN.match(target):
        raise HTTPParseError(f"Invalid request target: {target!r}")
    try:
        uri = urlsplit(target)
    except ValueError as e:
        raise HTTPParseError(f"Invalid request target: {target!r} ({e})")

    outside_authority = uri.path + uri.query + uri.fragment
    if "[" in outside_authority or "]" in outside_authority:
        raise HTTPParseError(f"Brackets outside the authority: {target!r}")
    if ("[" in uri.netloc or "]" in uri.netloc) \
            and not _IP_LITERAL_AUTHORITY_PATTERN.match(uri.netloc):
        raise HTTPParseError(f"Invalid IP-literal host: {target!r}")
    return uri


def parse_request_line(line: str) -> Tuple[str, str, SplitResult]:
    """
    Split a request line into (method, target, uri).

    Raises:
        HTTPParseError: Wrong token count, unsupported version, bad target.
    """
    tokens = line.split()
    if len(tokens) != 3:
        raise HTTPParseError(f"Malformed request line: {line!r}")

    method, target, version = tokens
    if version != HTTP_VERSION:
        raise HTTPParseError(f"Unsupported HTTP version: {version!r}")

    return method, target, parse_uri_reference(target)


def parse_header_line(line: str) -> Header:
    """
    Split "Name: value" at the first colon.

    The name keeps its case; leading whitespace is stripped from the value.

    Raises:
        HTTPParseError: If the line has no colon.
    """
    name, sep, value = line.partition(":")
    if not sep:
        raise HTTPParseError(f"Malformed header line: {line!r}")
    return name, value.lstrip()


def parse_content_length(value: str) -> int:
    """
    Parse a Content-Length value as a non-negative decimal integer.

    Raises:
        HTTPParseError: For signs, blanks or anything non-numeric.
    """
    value = value.strip()
    if not _DIGITS_PATTERN.match(value):
        raise HTTPParseError(f"Invalid Content-Length: {value!r}")
    return int(value)


class RequestParser:
    """
    Assembles a Request by reading from a LineReader (or a Connection).

    The parser keeps no per-request state, so a single instance is shared
    by every connection thread.

    Usage:
        parser = RequestParser()
        request = parser.parse(conn, conn.address)
    """

    def parse(self, reader, client_address: tuple = ("", 0)) -> Request:
        """
        Read and assemble one request.

        Args:
            reader: Anything with read_line() and read_exact(n).
            client_address: Peer address recorded on the Request.

        Returns:
            The assembled Request.

        Raises:
            HTTPParseError: Malformed input; abort the connection.
            EOFError: The stream ended early; abort the connection.
            OSError: The socket failed or timed out.
        """
        # AwaitRequestLine
        method, target, uri = parse_request_line(self._read_line(reader))

        # AwaitHeaders
        headers, content_length = self._read_headers(reader)

        # AwaitBody
        body = b""
        if content_length is not None:
            body = reader.read_exact(content_length)

        # Done
        return Request(
            method=method,
            uri=uri,
            headers=tuple(headers),
            body=body,
            target=target,
            client_address=client_address,
        )

    def _read_headers(self, reader) -> Tuple[List[Header], Optional[int]]:
        """
        Consume header lines up to and including the empty line.

        Returns:
            The ordered header list and the declared content length
            (last Content-Length wins), or None if there was none.
        """
        headers: List[Header] = []
        content_length: Optional[int] = None

        while True:
            line = self._read_line(reader)
            if line == "":
                return headers, content_length

            name, value = parse_header_line(line)
            headers.append((name, value))

            if name.lower() == "content-length":
                content_length = parse_content_length(value)

    @staticmethod
    def _read_line(reader) -> str:
        try:
            return reader.read_line()
        except LineTooLongError as e:
            raise HTTPParseError(str(e))


def parse_request(data: bytes, client_address: tuple = ("", 0)) -> Request:
    """
    Parse a complete request held in memory.

    Convenience wrapper, mostly for tests and tools:

        request = parse_request(b"GET / HTTP/1.1\\r\\n\\r\\n")
    """
    return RequestParser().parse(LineReader(io.BytesIO(data)), client_address)

"""
=============================================================================
RESPONSE BODY FRAMING
=============================================================================

The client must be told where the response body ends. HTTP/1.1 offers
two ways, and the server picks one when it is created:

    WholeBody()                         Chunked(size=4)
    ───────────                         ───────────────
    Content-Length: 11                  Transfer-Encoding: chunked

    hello world                         4\r\n
                                        hell\r\n
                                        4\r\n
                                        o wo\r\n
                                        3\r\n
                                        rld\r\n
                                        0\r\n          ← terminating chunk
                                        \r\n           ← empty trailer

Chunk sizes are lowercase hexadecimal without leading zeros. A body whose
length is an exact multiple of the chunk size produces no empty data
chunk; an empty body produces only the terminator "0\\r\\n\\r\\n".

The framing choice is a plain tagged value, not a class hierarchy:

    framing = framing_for(config.chunk_size)   # WholeBody() or Chunked(n)
    headers, payload = frame_body(framing, body)

=============================================================================
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union


CRLF = b"\r\n"
LAST_CHUNK = b"0" + CRLF + CRLF


@dataclass(frozen=True)
class WholeBody:
    """Send the body in one piece with a Content-Length header."""


@dataclass(frozen=True)
class Chunked:
    """
    Send the body with chunked transfer-encoding.

    Attributes:
        size: Maximum payload bytes per chunk, at least 1.
    """

    size: int

    def __post_init__(self):
        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise TypeError(f"Chunk size must be an int, got {self.size!r}")
        if self.size < 1:
            raise ValueError(f"Chunk size must be >= 1, got {self.size}")


Framing = Union[WholeBody, Chunked]


def framing_for(chunk_size: Optional[int]) -> Framing:
    """Map a configured chunk size (None for whole-body) to a framing."""
    if chunk_size is None:
        return WholeBody()
    return Chunked(chunk_size)


def slice_body(body: bytes, size: int) -> Iterator[bytes]:
    """
    Yield consecutive slices of at most `size` bytes.

    Never yields an empty slice, so b"" yields nothing at all.
    """
    for start in range(0, len(body), size):
        yield body[start:start + size]


def encode_chunk(data: bytes) -> bytes:
    """Encode one chunk: hex length, CRLF, payload, CRLF."""
    return b"%x" % len(data) + CRLF + data + CRLF


def encode_chunked(body: bytes, size: int) -> bytes:
    """Encode a whole body as a chunk stream, terminator included."""
    chunks = [encode_chunk(piece) for piece in slice_body(body, size)]
    chunks.append(LAST_CHUNK)
    return b"".join(chunks)


def frame_body(framing: Framing, body: Union[str, bytes]) -> Tuple[List[Tuple[str, str]], bytes]:
    """
    Frame a response body for the wire.

    Args:
        framing: WholeBody() or Chunked(size).
        body: Response body; str is encoded as UTF-8.

    Returns:
        (framing headers, bytes to send after the blank line)
    """
    if isinstance(body, str):
        body = body.encode("utf-8")

    if isinstance(framing, WholeBody):
        return [("Content-Length", str(len(body)))], body

    if isinstance(framing, Chunked):
        return [("Transfer-Encoding", "chunked")], encode_chunked(body, framing.size)

    raise TypeError(f"Unknown framing: {framing!r}")

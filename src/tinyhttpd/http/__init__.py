"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    request.py       Request value, request line/header parsing, assembler
    response.py      Response value, response writer, header helpers
    framing.py       Content-Length and chunked body framing
    status_codes.py  Reason phrase table
    query.py         Query string decoding

Nothing in this package touches sockets. Every function here works on
strings, bytes or a line reader, so it can be tested without a network.

=============================================================================
"""

from .request import (
    Request,
    RequestParser,
    HTTPParseError,
    parse_request,
    parse_request_line,
    parse_header_line,
    parse_content_length,
    parse_uri_reference,
)
from .response import (
    Response,
    render_head,
    write_response,
    add_cache,
    NO_CACHE,
    content_type,
)
from .framing import (
    Framing,
    WholeBody,
    Chunked,
    framing_for,
    frame_body,
    encode_chunked,
    slice_body,
)
from .status_codes import REASON_PHRASES, reason_phrase, register_reason
from .query import query_to_arguments

__all__ = [
    # Requests
    "Request",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "parse_request_line",
    "parse_header_line",
    "parse_content_length",
    "parse_uri_reference",
    # Responses
    "Response",
    "render_head",
    "write_response",
    "add_cache",
    "NO_CACHE",
    "content_type",
    # Framing
    "Framing",
    "WholeBody",
    "Chunked",
    "framing_for",
    "frame_body",
    "encode_chunked",
    "slice_body",
    # Status
    "REASON_PHRASES",
    "reason_phrase",
    "register_reason",
    # Query
    "query_to_arguments",
]

"""
=============================================================================
TINYHTTPD - A Trivial, Embeddable HTTP/1.1 Server
=============================================================================

Promotes a single function, Request -> Response, into a local web
server. Intended for small Ajax-style APIs, not as a web framework:
there is no routing, no middleware, no keep-alive and no TLS.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tinyhttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI demo server (python -m tinyhttpd)
    ├── server.py            # Entry points, Server token, orchestration
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Sockets
    │   ├── socket_server.py # Bind, listen, accept loop
    │   └── connection.py    # Client socket wrapper, line reader
    └── http/                # Protocol, no sockets
        ├── request.py       # Request value and assembler
        ├── response.py      # Response value and writer
        ├── framing.py       # Content-Length / chunked framing
        ├── status_codes.py  # Reason phrases
        └── query.py         # Query string decoding

=============================================================================
QUICK START
=============================================================================

    from tinyhttpd import init_server, Response, content_type, NO_CACHE

    def handler(request):
        if request.path != "/hello":
            return Response(404, [], "nothing here")
        name = dict(request.arguments).get("name", "world")
        return Response(200, [content_type("text/plain"), NO_CACHE],
                        f"hello {name}")

    init_server(8080, handler)      # returns at once, serves in background

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import (
    Server,
    HTTPServer,
    serve,
    init_server,
    init_server_lazy,
    init_server_bind,
    init_server_lazy_bind,
)
from .http import (
    Request,
    Response,
    HTTPParseError,
    query_to_arguments,
    add_cache,
    NO_CACHE,
    content_type,
    register_reason,
)

__all__ = [
    "Server",
    "HTTPServer",
    "ServerConfig",
    "serve",
    "init_server",
    "init_server_lazy",
    "init_server_bind",
    "init_server_lazy_bind",
    "Request",
    "Response",
    "HTTPParseError",
    "query_to_arguments",
    "add_cache",
    "NO_CACHE",
    "content_type",
    "register_reason",
    "__version__",
]

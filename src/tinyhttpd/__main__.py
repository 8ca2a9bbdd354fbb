"""
=============================================================================
COMMAND LINE DEMO SERVER
=============================================================================

    # Whole-body responses on port 8080, all interfaces
    python -m tinyhttpd

    # Chunked responses, 16 bytes per chunk, localhost only
    python -m tinyhttpd --host 127.0.0.1 --chunk-size 16

    # Bounded resources
    python -m tinyhttpd --read-timeout 10 --max-connections 64

    # Try it
    curl -i 'http://127.0.0.1:8080/echo?a=1&b=hello%20world' -d 'payload'

The demo handler echoes the request back as text/plain and answers
404 for /missing.

=============================================================================
"""

import argparse
import logging
import sys
import threading

from . import __version__
from .config import ServerConfig
from .server import serve
from .http import Request, Response, content_type, NO_CACHE


logger = logging.getLogger("tinyhttpd")


def echo_handler(request: Request) -> Response:
    """Describe the request back to the client."""
    if request.path == "/missing":
        return Response(404, [content_type("text/plain")], "Not Found\n")

    lines = [f"{request.method} {request.target}", ""]
    lines.append("Headers:")
    lines.extend(f"  {name}: {value}" for name, value in request.headers)
    lines.append("Arguments:")
    lines.extend(f"  {key} = {value}" for key, value in request.arguments)
    lines.append(f"Body ({len(request.body)} bytes):")
    lines.append(request.body.decode("utf-8", errors="replace"))

    return Response(
        200,
        [content_type("text/plain; charset=utf-8"), NO_CACHE],
        "\n".join(lines) + "\n",
    )


def setup_logging(level_name: str):
    """Configure the root logger for console output."""
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("tinyhttpd").setLevel(level)


def build_parser() -> argparse.ArgumentParser:
    defaults = ServerConfig.from_env()

    parser = argparse.ArgumentParser(
        prog="tinyhttpd",
        description="Trivial HTTP/1.1 server running an echo handler",
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Address to bind to (default: {defaults.host})"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL AND LIMITS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--chunk-size", "-c",
        type=int,
        default=defaults.chunk_size,
        help="Send chunked responses with this chunk size (default: whole body)"
    )
    parser.add_argument(
        "--read-timeout",
        type=float,
        default=defaults.read_timeout,
        help="Abort connections whose reads stall this many seconds (default: never)"
    )
    parser.add_argument(
        "--max-connections",
        type=int,
        default=defaults.max_connections,
        help="Maximum concurrent connections (default: unbounded)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tinyhttpd {__version__}"
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        chunk_size=args.chunk_size,
        read_timeout=args.read_timeout,
        max_connections=args.max_connections,
        log_level=args.log_level,
    )

    try:
        server = serve(config, echo_handler)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    host, port = server.address
    mode = f"chunked ({config.chunk_size} bytes)" if config.chunk_size else "whole body"
    logger.info(f"Serving http://{host}:{port}/ ({mode}), press Ctrl+C to stop")

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    return 0


if __name__ == "__main__":
    sys.exit(main())

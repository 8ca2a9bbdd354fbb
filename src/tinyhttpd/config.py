"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the embeddable HTTP server.

Every initialization entry point builds a ServerConfig, validates it, and
only then touches the network. A bad chunk size or port therefore fails
at startup, never on the first request.

=============================================================================
RESOURCE LIMITS
=============================================================================

The server spawns one thread per accepted connection and, by default,
never times out a read. Both behaviours are explicit settings here:

    read_timeout     None  -> a silent client holds its thread forever
                     5.0   -> any read stalling 5 seconds aborts the connection

    max_connections  None  -> no cap on concurrent connection threads
                     64    -> the accept loop waits for a free slot

The defaults reproduce the unbounded behaviour. Set both in production.

=============================================================================
"""

import os
import socket
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for one server instance.

    Development:
        ServerConfig(host="127.0.0.1", port=8080, log_level="DEBUG")

    Chunked responses, bounded resources:
        ServerConfig(port=8080, chunk_size=4096,
                     read_timeout=10.0, max_connections=128)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces (wildcard address)
    - "127.0.0.1" - Localhost only
    """

    port: int = 8080
    """The port number to listen on. 0 lets the OS pick a free port."""

    backlog: int = socket.SOMAXCONN
    """Maximum number of queued connections passed to listen()."""

    buffer_size: int = 8192
    """Size of the per-connection read buffer in bytes."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    chunk_size: Optional[int] = None
    """
    Response body framing.
    None - whole body, sent with a Content-Length header
    N    - Transfer-Encoding: chunked, at most N bytes per chunk
    """

    max_line_length: int = 64 * 1024
    """Longest request or header line accepted before aborting."""

    # ─────────────────────────────────────────────────────────────────────
    # RESOURCE LIMITS
    # ─────────────────────────────────────────────────────────────────────

    read_timeout: Optional[float] = None
    """Seconds a single read may block. None waits forever."""

    max_connections: Optional[int] = None
    """Concurrent connection threads allowed. None is unbounded."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level used by the command line entry point."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

            HTTPD_HOST             Bind address (default: 0.0.0.0)
            HTTPD_PORT             Port (default: 8080)
            HTTPD_CHUNK_SIZE       Chunk size, unset for whole-body framing
            HTTPD_READ_TIMEOUT     Read timeout in seconds, unset for none
            HTTPD_MAX_CONNECTIONS  Connection cap, unset for unbounded
            HTTPD_LOG_LEVEL        Logging level (default: INFO)
        """
        return cls(
            host=os.getenv("HTTPD_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTPD_PORT", "8080")),
            chunk_size=_optional(os.getenv("HTTPD_CHUNK_SIZE"), int),
            read_timeout=_optional(os.getenv("HTTPD_READ_TIMEOUT"), float),
            max_connections=_optional(os.getenv("HTTPD_MAX_CONNECTIONS"), int),
            log_level=os.getenv("HTTPD_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: On the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.chunk_size is not None and self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_line_length < 1:
            raise ValueError("max_line_length must be >= 1")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")

        if self.max_connections is not None and self.max_connections < 1:
            raise ValueError("max_connections must be >= 1")


def _optional(value: Optional[str], convert):
    """Convert an environment value, treating unset or blank as None."""
    if value is None or not value.strip():
        return None
    return convert(value)

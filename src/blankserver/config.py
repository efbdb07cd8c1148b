"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the blank page server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── blankserver --port 3000                                   │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── BLANKSERVER_PORT=3000 blankserver                         │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The config is built once at startup and never changes afterwards. Every
component that needs a setting receives the same frozen instance, so a
forked connection process sees exactly what the parent saw.

=============================================================================
"""

import os
from dataclasses import dataclass


_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the blank page server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, poll_interval

    CONCURRENCY
    - background (one process per connection instead of inline handling)

    OUTPUT
    - verbosity, quiet, print_headers, access_log

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """Address to bind. The default listens on every local interface."""

    port: int = 8000
    """Port to listen on. 0 asks the OS for a free port."""

    backlog: int = 25
    """Pending connections the kernel queues before refusing new ones."""

    buffer_size: int = 2048
    """
    Size of the single read performed per connection.
    Anything the client sends beyond this is never looked at.
    """

    poll_interval: float = 1.0
    """How often (seconds) the accept loop checks for a shutdown request."""

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    background: bool = False
    """
    Handle each connection in its own forked process.
    False = serial mode, one connection at a time in the accept loop.
    """

    # ─────────────────────────────────────────────────────────────────────
    # OUTPUT
    # ─────────────────────────────────────────────────────────────────────

    verbosity: int = 0
    """0 = silent, 1 = info messages, 2+ = debug messages."""

    quiet: bool = False
    """Suppress warnings and panic messages (exit codes are unaffected)."""

    print_headers: bool = False
    """Echo the request line and header lines of every request to stdout."""

    access_log: bool = False
    """Write one access-log line per answered request to stdout."""

    @property
    def verbose(self) -> bool:
        return self.verbosity >= 1

    @property
    def debug(self) -> bool:
        return self.verbosity >= 2

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        BLANKSERVER_HOST           Bind address (default: 0.0.0.0)
        BLANKSERVER_PORT           Listen port (default: 8000)
        BLANKSERVER_VERBOSITY      Verbosity level (default: 0)
        BLANKSERVER_QUIET          Suppress warnings and panics (default: off)
        BLANKSERVER_BACKGROUND     Process per connection (default: off)
        BLANKSERVER_PRINT_HEADERS  Echo request headers (default: off)
        BLANKSERVER_ACCESS_LOG     Write access log (default: off)

        Flags accept 1/true/yes/on (case-insensitive).

        =====================================================================
        """
        return cls(
            host=os.getenv("BLANKSERVER_HOST", "0.0.0.0"),
            port=int(os.getenv("BLANKSERVER_PORT", "8000")),
            verbosity=int(os.getenv("BLANKSERVER_VERBOSITY", "0")),
            quiet=_env_flag("BLANKSERVER_QUIET"),
            background=_env_flag("BLANKSERVER_BACKGROUND"),
            print_headers=_env_flag("BLANKSERVER_PRINT_HEADERS"),
            access_log=_env_flag("BLANKSERVER_ACCESS_LOG"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at startup so a bad value fails before the socket is bound.

        Raises:
            ValueError: If any setting is out of range.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")

        if self.verbosity < 0:
            raise ValueError("verbosity must be >= 0")

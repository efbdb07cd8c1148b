"""
=============================================================================
BLANKSERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (all interfaces, port 8000, serial mode)
    python -m blankserver

    # Custom port, chatty
    python -m blankserver --port 3000 -v

    # One process per connection, with an access log
    python -m blankserver --background --log

    # Show what clients send
    python -m blankserver --print-headers

Environment variables (BLANKSERVER_PORT, BLANKSERVER_ACCESS_LOG, ...)
provide the defaults; flags override them.

Exit status: 0 after SIGINT/SIGTERM, --help or --version. 1 when the
server cannot start (port in use, invalid settings, ...).

=============================================================================
"""

import argparse
import sys
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .config import ServerConfig
from .log import configure_logging, panic
from .server import BlankServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blankserver",
        description="Serve a blank html page for any request",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"port to listen for requests on (default: {defaults.port})",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=defaults.verbosity,
        help="verbose output, repeat for debug output",
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        default=defaults.quiet,
        help="suppress warnings and errors",
    )

    parser.add_argument(
        "--background", "-b",
        action="store_true",
        default=defaults.background,
        help="handle each connection in its own process, so several "
             "requests can be served at once (disables verbose output)",
    )

    parser.add_argument(
        "--print-headers", "-H",
        action="store_true",
        default=defaults.print_headers,
        help="print the request line and headers of every request",
    )

    parser.add_argument(
        "--log", "-l",
        dest="access_log",
        action="store_true",
        default=defaults.access_log,
        help="write an access-log line for every request",
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"This is blankserver {__version__}.",
    )

    return parser


def config_from_args(args: argparse.Namespace, defaults: ServerConfig) -> ServerConfig:
    verbosity = args.verbose
    if args.background:
        # Background mode is meant to run unattended
        verbosity = 0

    return replace(
        defaults,
        port=args.port,
        verbosity=verbosity,
        quiet=args.quiet,
        background=args.background,
        print_headers=args.print_headers,
        access_log=args.access_log,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    1. Read defaults from the environment
    2. Override with command-line flags
    3. Run the server until a shutdown signal
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        configure_logging(ServerConfig())
        panic(f"Invalid environment setting: {e}")

    parser = build_parser(defaults)
    args = parser.parse_args(argv)
    config = config_from_args(args, defaults)

    configure_logging(config)

    try:
        server = BlankServer(config)
    except ValueError as e:
        panic(str(e))

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())

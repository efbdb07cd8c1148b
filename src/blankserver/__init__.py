"""
=============================================================================
BLANKSERVER - A Web Server That Serves a Blank Page
=============================================================================

Answers every request, whatever it asks for, with the same tiny HTML
page. Useful as a sink for ad or tracker hostnames pointed at a local
address, as a health-check target, or for load-testing a client.

    $ blankserver --port 8000 --log
    $ curl -i http://localhost:8000/anything
    HTTP/1.1 200 OK
    Content-Type: text/html
    Last-Modified: Sat, 08 Jan 1492 01:12:12 GMT
    Content-Length: 15

    <html> </html>

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    blankserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m blankserver)
    ├── server.py            # BlankServer facade
    ├── config.py            # ServerConfig dataclass
    ├── log.py               # Diagnostics, access log, header echo
    ├── core/
    │   ├── socket_server.py # Listening socket and accept loop
    │   ├── connection.py    # Client socket wrapper
    │   ├── handler.py       # One request/response exchange
    │   ├── dispatch.py      # Serial or process-per-connection
    │   └── signals.py       # SIGINT/SIGTERM shutdown
    └── http/
        ├── scanner.py       # Request line, Referer, User-Agent
        ├── response.py      # The fixed response
        └── access_log.py    # Access-log line format

=============================================================================
WHAT IT DOES NOT DO
=============================================================================

No routing, no files, no keep-alive, no request bodies, no TLS. One read,
one fixed answer, close.

=============================================================================
"""

__version__ = "1.0.0"

from .server import BlankServer
from .config import ServerConfig

__all__ = ["BlankServer", "ServerConfig", "__version__"]

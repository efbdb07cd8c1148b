"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Runs one connection from start to finish:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    handle() Flow                                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   receive()  ── one read of up to buffer_size bytes                  │
    │       │          read error ──────────────────────────► close        │
    │       ▼                                                              │
    │   scan_request()                                                     │
    │       │          no request line ─────────────────────► close        │
    │       ▼                                                              │
    │   echo headers   (if print_headers)                                  │
    │       ▼                                                              │
    │   write_response()                                                   │
    │       │          send error ──────────────────────────► close        │
    │       ▼                                                              │
    │   access log     (if access_log)                                     │
    │       ▼                                                              │
    │   close()        always                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Nothing raised in here reaches the accept loop. A broken client costs
one warning line and its own connection, nothing else.

=============================================================================
"""

import logging

from ..config import ServerConfig
from ..http.scanner import scan_request
from ..http.response import write_response
from ..http.access_log import AccessLogEntry
from ..log import access_logger, headers_logger
from .connection import Connection, ConnectionState


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Handles a single accepted connection.

    Holds nothing but the config, so one instance can serve every
    connection, inline or in a forked child.
    """

    def __init__(self, config: ServerConfig):
        self.config = config

    def __call__(self, conn: Connection) -> ConnectionState:
        return self.handle(conn)

    def handle(self, conn: Connection) -> ConnectionState:
        """
        Receive, scan, respond, log, close.

        Args:
            conn: The accepted connection. It is closed on return.

        Returns:
            The last state reached before the connection was closed.
        """
        outcome = conn.state
        try:
            outcome = self._exchange(conn)
        except Exception:
            logger.warning(f"[{conn.id}] Unexpected error handling connection", exc_info=True)
        finally:
            conn.close()
        return outcome

    def _exchange(self, conn: Connection) -> ConnectionState:
        data = conn.receive(self.config.buffer_size)
        if data is None:
            return conn.state

        request = scan_request(data)
        if request is None:
            conn.state = ConnectionState.DISCARDED
            logger.debug(f"[{conn.id}] No request line in {len(data)} bytes, discarding")
            return conn.state

        conn.state = ConnectionState.PARSED

        if self.config.print_headers:
            headers_logger.info(request.request_line)
            for line in request.header_lines:
                headers_logger.info(line)

        if not write_response(conn):
            return conn.state

        conn.state = ConnectionState.RESPONDED

        if self.config.access_log:
            entry = AccessLogEntry.from_request(conn.client_ip, request)
            access_logger.info(entry.to_text())

        conn.state = ConnectionState.LOGGED
        return conn.state

"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps an accepted client socket for the one exchange it will ever see.

=============================================================================
ONE READ, NO REASSEMBLY
=============================================================================

TCP does not preserve message boundaries. A request may arrive in one
recv() or in several:

    Client sends:
        GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n

    Server might receive:
        recv() → "GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n"   (usual case)
        recv() → "GET / HT"                               (split!)

A real HTTP server buffers until it sees \\r\\n\\r\\n. This one doesn't.
It reads once, up to buffer_size bytes, and works with whatever came in.
A request whose first line is split across reads is simply not answered.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    ACCEPTED ──► RECEIVED ──► PARSED ──► RESPONDED ──► LOGGED ──┐
        │            │           │            │                  │
        │            ▼           │            │                  │
        │        DISCARDED       │            │                  │
        │            │           │            │                  │
        ▼            ▼           ▼            ▼                  ▼
    ┌───────────────────────────────────────────────────────────────┐
    │                           CLOSED                              │
    └───────────────────────────────────────────────────────────────┘

Every path ends in CLOSED. Errors along the way only shorten the path.

=============================================================================
"""

import socket
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its single request/response exchange."""
    ACCEPTED = "accepted"      # Just accepted, nothing read yet
    RECEIVED = "received"      # The one read has completed
    PARSED = "parsed"          # A request line was found
    DISCARDED = "discarded"    # No request line, nothing will be sent
    RESPONDED = "responded"    # All five response pieces went out
    LOGGED = "logged"          # Access log written (or not wanted)
    CLOSED = "closed"          # Socket shut down and released


@dataclass
class Connection:
    """
    Represents a client connection.

    Owns the client socket from accept() to close(). Socket errors are
    reported here as warnings and turned into None/False results, so the
    caller only has to decide whether to keep going.

    Usage:
        with Connection(sock, addr) as conn:
            data = conn.receive(2048)
            if data is not None:
                conn.send_piece(b"...")
        # socket shut down and closed here
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.ACCEPTED

    def __post_init__(self):
        # The listening socket polls with a timeout; accepted sockets must
        # not inherit it. Reads and writes block until the peer acts.
        self.socket.setblocking(True)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    def receive(self, buffer_size: int) -> Optional[bytes]:
        """
        Perform the single read for this connection.

        Args:
            buffer_size: Maximum number of bytes to read.

        Returns:
            The bytes read (possibly empty if the client sent nothing and
            closed), or None if the read failed.
        """
        try:
            data = self.socket.recv(buffer_size)
        except OSError as e:
            logger.warning("Error receiving request from client.")
            logger.debug(f"[{self.id}] recv failed: {e}")
            return None

        self.state = ConnectionState.RECEIVED
        return data

    def send_piece(self, data: bytes) -> bool:
        """
        Send one piece of the response.

        Returns:
            True if sent, False if the client is gone.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning("Error sending data to client.")
            logger.debug(f"[{self.id}] send failed: {e}")
            return False

    def close(self):
        """
        Shut down both directions and release the socket.

        shutdown(SHUT_RDWR) sends FIN and discards anything still unread.
        It fails if the peer already reset the connection; that is reported
        and the socket is closed anyway so the descriptor never leaks.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.warning("Error shutting down client socket.")
            logger.debug(f"[{self.id}] shutdown failed: {e}")

        try:
            self.socket.close()
        except OSError as e:
            logger.warning("Error closing client socket.")
            logger.debug(f"[{self.id}] close failed: {e}")

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions

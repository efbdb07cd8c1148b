"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Everything that happens
after accept() is somebody else's job: each new connection is wrapped in
a Connection and handed to a dispatch callable.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create a TCP socket
    2. bind()      Reserve 0.0.0.0:PORT (every local interface)
    3. listen(25)  Let the kernel queue up to 25 pending connections
    4. accept()    Wait for a client, get a NEW socket for it
    5. close()     Release the listening socket at shutdown

Failing at 1-3 means there is nothing to serve, so those are panics.

=============================================================================
INTERRUPTIBLE ACCEPT
=============================================================================

A blocking accept() would sit there forever, even after a SIGTERM asked
us to stop. So the listening socket gets a short timeout:

    while not shutdown requested:
        try:
            accept()          # returns within poll_interval
        except timeout:
            on_idle()         # housekeeping, e.g. reaping children
            continue          # look at the shutdown flag again

shutdown() sets the flag and shuts the listening socket down at once, so
no connection is accepted between the request and the loop noticing it.
A blocked accept() wakes up with an error, which the loop treats as the
end. The loop still owns the final close().

=============================================================================
"""

import socket
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from ..log import panic
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    serve(dispatch)                                                   │
    │        ├──► _open()          socket(), setsockopt, bind, listen      │
    │        ├──► _accept_loop()   accept → Connection → dispatch(conn)   │
    │        └──► _cleanup()       close the listening socket              │
    │                                                                      │
    │    shutdown()                                                        │
    │        ├──► _shutdown_event.set()                                    │
    │        └──► listening socket shutdown(SHUT_RDWR)                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = SocketServer(config)
        server.serve(handler)   # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._shutdown_event = threading.Event()
        self._ready_event = threading.Event()

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_event.is_set()

    @property
    def is_running(self) -> bool:
        return self._socket is not None and not self._shutdown_event.is_set()

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        Reports the real port once listening, which matters when the
        config asked for port 0.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. False on timeout."""
        return self._ready_event.wait(timeout)

    def _open(self) -> socket.socket:
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError:
            panic("Couldn't create socket.")

        # Restarting right after a stop would otherwise hit TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        try:
            sock.bind((self.config.host, self.config.port))
        except OSError as e:
            sock.close()
            logger.debug(f"bind({self.config.host}:{self.config.port}) failed: {e}")
            panic("Couldn't bind to specified port.")

        try:
            sock.listen(self.config.backlog)
        except OSError:
            sock.close()
            panic("Couldn't listen on specified port.")

        sock.settimeout(self.config.poll_interval)
        return sock

    def serve(
        self,
        dispatch: Callable[[Connection], object],
        on_idle: Optional[Callable[[], object]] = None,
    ):
        """
        Accept connections until shutdown() is called.

        Args:
            dispatch: Called with every accepted Connection. It owns the
                      connection from then on.
            on_idle:  Called each time accept() times out with nobody
                      waiting.
        """
        if self._shutdown_event.is_set():
            return

        self._socket = self._open()
        self._ready_event.set()
        logger.info(f"Listening for connections on port {self.address[1]}...")

        try:
            self._accept_loop(dispatch, on_idle)
        finally:
            self._cleanup()

    def _accept_loop(self, dispatch, on_idle):
        while not self._shutdown_event.is_set():
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                if on_idle is not None:
                    on_idle()
                continue
            except OSError as e:
                if self._shutdown_event.is_set():
                    break
                logger.debug(f"accept() failed: {e}")
                panic("Couldn't accept connection!")

            logger.info("Connected, handling requests.")
            conn = Connection(socket=client_socket, address=client_address[:2])
            logger.debug(f"[{conn.id}] Accepted {client_address[0]}:{client_address[1]}")
            dispatch(conn)

    def shutdown(self):
        """
        Stop accepting, immediately.

        Safe to call from a signal handler or another thread, and more
        than once. The listening socket stops taking connections before
        this returns; the loop itself does the final close().
        """
        self._shutdown_event.set()

        sock = self._socket
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Not every platform allows shutdown() on a listener
            sock.close()

    def _cleanup(self):
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                logger.warning("Error closing socket.")
            self._socket = None
        self._ready_event.clear()
        logger.debug("Listening socket closed")

"""
=============================================================================
SIGNAL HANDLING FOR SHUTDOWN
=============================================================================

SIGINT (2):   Sent when user presses Ctrl+C
SIGTERM (15): Sent by kill, systemd stop, docker stop

Both mean "stop serving and exit 0", right now:

    signal ──► handler
                 ├──► server.shutdown()     listener stops accepting
                 └──► raise ServerShutdown  unwinds whatever was running
                            │
        accept() or a serial-mode recv()/send() is interrupted
        connection in flight is closed by its finally block
        serve() cleans up the listening socket
        BlankServer.run() returns ──► main() returns 0

A stalled client in serial mode cannot hold the process up; its
connection is abandoned, not drained.

ServerShutdown derives from BaseException so the per-connection
"except Exception" in the handler lets it through.

Only the first signal raises. Once a shutdown has been requested, later
signals just repeat the (idempotent) shutdown() call.

=============================================================================
"""

import signal
import logging
from typing import Dict

from ..log import panic


logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ServerShutdown(BaseException):
    """Raised from the signal handler to unwind the serving loop."""

    def __init__(self, signum: int):
        super().__init__(signum)
        self.signum = signum


class ShutdownSignals:
    """
    Traps SIGINT/SIGTERM and turns them into an immediate shutdown.

    Must be installed from the main thread (a Python restriction on
    signal.signal), and the serving code must run in that thread too,
    since that is where ServerShutdown is raised.

    Usage:
        signals = ShutdownSignals(socket_server)
        try:
            signals.install()
            socket_server.serve(dispatch)
        except ServerShutdown:
            pass
        finally:
            signals.restore()
    """

    def __init__(self, server):
        self.server = server
        self.caught = 0
        self._original_handlers: Dict[int, object] = {}

    def _handle(self, signum, frame):
        self.caught += 1
        first = not self.server.shutdown_requested
        self.server.shutdown()
        if not first:
            return

        logger.info("Signal caught, exiting.")
        logger.debug(f"Received {signal.Signals(signum).name}")
        raise ServerShutdown(signum)

    def install(self):
        try:
            for sig in SHUTDOWN_SIGNALS:
                self._original_handlers[sig] = signal.signal(sig, self._handle)
        except (ValueError, OSError):
            self.restore()
            panic("Couldn't setup signal traps.")

    def restore(self):
        """Put back whatever handlers were there before install()."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

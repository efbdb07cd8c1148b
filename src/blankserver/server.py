"""
=============================================================================
BLANK PAGE SERVER
=============================================================================

Ties the pieces together:

    ServerConfig ──► BlankServer
                        ├── SocketServer        accept loop
                        ├── ConnectionHandler   one exchange per connection
                        ├── dispatcher          serial or process per conn
                        └── ShutdownSignals     SIGINT/SIGTERM → stop at once

Request flow:
    1. Accept TCP connection on the listening socket
    2. Hand it to the dispatcher (inline, or a forked child)
    3. Read once, up to 2048 bytes
    4. Scan for the request line, Referer and User-Agent
    5. Send the fixed blank page
    6. Optionally write one access-log line
    7. Shut down and close the connection

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import (
    ConnectionHandler,
    SocketServer,
    ShutdownSignals,
    ServerShutdown,
    create_dispatcher,
)


logger = logging.getLogger(__name__)


class BlankServer:
    """
    Serves a blank HTML page for any request.

    Usage:
        server = BlankServer(ServerConfig(port=8000, access_log=True))
        server.run()   # Blocks until SIGINT/SIGTERM
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self.handler = ConnectionHandler(self.config)
        self.dispatcher = create_dispatcher(self.config, self.handler)
        self._socket_server = SocketServer(self.config)

    @property
    def socket_server(self) -> SocketServer:
        return self._socket_server

    @property
    def address(self):
        return self._socket_server.address

    def run(self, install_signals: bool = True):
        """
        Start the server (blocking).

        Args:
            install_signals: Trap SIGINT/SIGTERM for shutdown. Only
                             possible from the main thread; pass False
                             when running the server in a thread.
        """
        signals = ShutdownSignals(self._socket_server) if install_signals else None

        mode = "background" if self.config.background else "serial"
        logger.debug(f"Starting in {mode} mode")

        try:
            if signals is not None:
                signals.install()
            self._socket_server.serve(self.dispatcher, on_idle=self.dispatcher.reap)
        except ServerShutdown as e:
            logger.debug(f"Interrupted by signal {e.signum}")
        finally:
            if signals is not None:
                signals.restore()

        logger.debug("Server stopped")

    def shutdown(self):
        self._socket_server.shutdown()

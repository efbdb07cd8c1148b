"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing of the server:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SOCKET SERVER                                                      │
    │  Binds 0.0.0.0:PORT, runs the accept loop, stops on shutdown()     │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ accepted Connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  DISPATCHER                                                         │
    │  Serial: handle inline. Background: fork one process per connection│
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION HANDLER                                                 │
    │  One read, scan, fixed response, optional access log, close        │
    └─────────────────────────────────────────────────────────────────────┘

ShutdownSignals sits beside all of this. SIGINT/SIGTERM stop the socket
server and unwind whatever connection is in flight.

=============================================================================
"""

from .connection import Connection, ConnectionState
from .handler import ConnectionHandler
from .socket_server import SocketServer
from .dispatch import SerialDispatcher, ProcessDispatcher, create_dispatcher
from .signals import ShutdownSignals, ServerShutdown

__all__ = [
    "Connection",
    "ConnectionState",
    "ConnectionHandler",
    "SocketServer",
    "SerialDispatcher",
    "ProcessDispatcher",
    "create_dispatcher",
    "ShutdownSignals",
    "ServerShutdown",
]

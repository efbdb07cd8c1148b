"""
=============================================================================
DISPATCH: WHO HANDLES AN ACCEPTED CONNECTION
=============================================================================

Two models, fixed at startup by ServerConfig.background:

    SERIAL (default)
    ────────────────
        accept ──► handle ──► accept ──► handle ──► ...

        One thread of control. At most one connection in flight. A slow
        client holds up everyone behind it.

    BACKGROUND (process per connection)
    ───────────────────────────────────
        accept ──► fork ──► accept ──► fork ──► accept ...
                    │                   │
                    ▼                   ▼
                 handle, exit        handle, exit

        Each connection runs in its own forked process. The parent only
        accepts. A stalled client blocks its own process and nothing else.

=============================================================================
WHY PROCESSES, NOT THREADS?
=============================================================================

A forked child shares nothing mutable with the parent or its siblings.
It inherits the frozen config and the log streams, writes its response,
maybe writes one access-log line, and exits. A crash in one child cannot
corrupt another connection's state because there is no shared state.

The parent must close its own copy of the client socket right after the
fork. Otherwise the client would not see EOF until both copies closed.

Children are daemonic: if the parent shuts down, in-flight children are
terminated rather than waited for. Finished children are reaped before
each fork and whenever the accept loop is idle, so none linger as
zombies while no new connections arrive.

=============================================================================
"""

import signal
import logging
import multiprocessing
from typing import Callable, List

from ..config import ServerConfig
from ..log import panic
from .connection import Connection


logger = logging.getLogger(__name__)

Handler = Callable[[Connection], object]


class SerialDispatcher:
    """Handles every connection inline, in the accept loop's thread."""

    def __init__(self, handler: Handler):
        self.handler = handler

    def __call__(self, conn: Connection):
        self.handler(conn)

    def reap(self):
        pass


def _run_in_child(handler: Handler, conn: Connection):
    # Ctrl+C reaches the whole process group; children just die.
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGTERM, signal.SIG_DFL)
    handler(conn)


class ProcessDispatcher:
    """
    Handles every connection in a freshly forked process.

    Uses multiprocessing's "fork" start method, so it is POSIX only. The
    connection (with its socket) is inherited by the child as-is, no
    pickling involved.
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self._context = multiprocessing.get_context("fork")
        self._children: List[multiprocessing.Process] = []

    @property
    def active_children(self) -> int:
        self.reap()
        return len(self._children)

    def __call__(self, conn: Connection):
        self.reap()

        child = self._context.Process(
            target=_run_in_child,
            args=(self.handler, conn),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        try:
            child.start()
        except OSError:
            conn.close()
            panic("Error forking.")

        self._children.append(child)
        logger.debug(f"[{conn.id}] Handed to pid {child.pid}")

        # The child has its own descriptor now. Close ours without
        # shutdown(), which would cut the child's connection too.
        conn.socket.close()

    def reap(self):
        """Join and release children that have exited."""
        alive = []
        for child in self._children:
            if child.is_alive():
                alive.append(child)
            else:
                child.join()
                child.close()
        self._children = alive


def create_dispatcher(config: ServerConfig, handler: Handler):
    """Pick the dispatch model the config asks for."""
    if config.background:
        return ProcessDispatcher(handler)
    return SerialDispatcher(handler)

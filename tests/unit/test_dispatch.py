"""
Unit tests for dispatchers and shutdown signals.
"""

import os
import signal
import socket
import threading
from unittest import mock

import pytest

from blankserver import ServerConfig
from blankserver.core.connection import Connection
from blankserver.core.dispatch import (
    SerialDispatcher,
    ProcessDispatcher,
    create_dispatcher,
)
from blankserver.core.handler import ConnectionHandler
from blankserver.core.signals import ShutdownSignals, ServerShutdown
from blankserver.core.socket_server import SocketServer
from blankserver.http.response import RESPONSE_BYTES


class TestCreateDispatcher:

    def test_serial_by_default(self):
        dispatcher = create_dispatcher(ServerConfig(), lambda conn: None)

        assert isinstance(dispatcher, SerialDispatcher)

    def test_background_uses_processes(self):
        dispatcher = create_dispatcher(ServerConfig(background=True), lambda conn: None)

        assert isinstance(dispatcher, ProcessDispatcher)


class TestSerialDispatcher:

    def test_handles_inline(self):
        seen = []
        dispatcher = SerialDispatcher(seen.append)
        conn = Connection(socket=mock.MagicMock(), address=("127.0.0.1", 1))

        dispatcher(conn)

        assert seen == [conn]

    def test_reap_is_a_no_op(self):
        SerialDispatcher(lambda conn: None).reap()


class TestReap:

    def test_releases_only_finished_children(self):
        dispatcher = ProcessDispatcher(lambda conn: None)
        finished = mock.MagicMock()
        finished.is_alive.return_value = False
        running = mock.MagicMock()
        running.is_alive.return_value = True
        dispatcher._children = [finished, running]

        dispatcher.reap()

        finished.join.assert_called_once_with()
        finished.close.assert_called_once_with()
        running.join.assert_not_called()
        assert dispatcher._children == [running]


@pytest.mark.skipif(not hasattr(os, "fork"), reason="requires fork()")
class TestProcessDispatcher:

    def test_child_answers_and_parent_lets_go(self):
        server_side, client_side = socket.socketpair()
        client_side.settimeout(10.0)
        conn = Connection(socket=server_side, address=("127.0.0.1", 1))
        dispatcher = ProcessDispatcher(ConnectionHandler(ServerConfig()))

        try:
            dispatcher(conn)
            # Parent's copy is closed right away
            assert conn.socket.fileno() == -1

            client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
            chunks = []
            while True:
                chunk = client_side.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
            assert b"".join(chunks) == RESPONSE_BYTES
        finally:
            client_side.close()
            for child in dispatcher._children:
                child.join(timeout=10.0)

        assert dispatcher.active_children == 0

    def test_fork_failure_panics(self):
        sock = mock.MagicMock()
        conn = Connection(socket=sock, address=("127.0.0.1", 1))
        dispatcher = ProcessDispatcher(lambda c: None)

        with mock.patch.object(dispatcher._context, "Process") as process_cls:
            process_cls.return_value.start.side_effect = OSError("fork failed")
            with pytest.raises(SystemExit) as exc_info:
                dispatcher(conn)

        assert exc_info.value.code == 1
        assert conn.closed


class TestShutdownSignals:

    @pytest.fixture
    def server(self):
        return SocketServer(ServerConfig(host="127.0.0.1", port=0))

    @pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGINT])
    def test_signal_stops_server_and_unwinds(self, server, signum):
        signals = ShutdownSignals(server)
        signals.install()
        try:
            with pytest.raises(ServerShutdown) as exc_info:
                signal.raise_signal(signum)
        finally:
            signals.restore()

        assert exc_info.value.signum == signum
        assert server.shutdown_requested

    def test_not_caught_by_except_exception(self, server):
        """Test that a per-connection catch-all cannot swallow the shutdown."""
        signals = ShutdownSignals(server)
        signals.install()
        try:
            with pytest.raises(ServerShutdown):
                try:
                    signal.raise_signal(signal.SIGTERM)
                except Exception:
                    pass
        finally:
            signals.restore()

    def test_later_signals_do_not_raise(self, server):
        signals = ShutdownSignals(server)
        signals.install()
        try:
            with pytest.raises(ServerShutdown):
                signal.raise_signal(signal.SIGTERM)
            signal.raise_signal(signal.SIGTERM)
            signal.raise_signal(signal.SIGINT)
        finally:
            signals.restore()

        assert signals.caught == 3
        assert server.shutdown_requested

    def test_restore_puts_back_previous_handlers(self):
        before = signal.getsignal(signal.SIGTERM)
        signals = ShutdownSignals(mock.MagicMock())

        signals.install()
        assert signal.getsignal(signal.SIGTERM) != before
        signals.restore()

        assert signal.getsignal(signal.SIGTERM) == before

    def test_install_outside_main_thread_panics(self):
        codes = []

        def target():
            try:
                ShutdownSignals(mock.MagicMock()).install()
            except SystemExit as e:
                codes.append(e.code)

        thread = threading.Thread(target=target)
        thread.start()
        thread.join()

        assert codes == [1]

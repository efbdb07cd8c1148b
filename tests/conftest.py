"""
pytest configuration and fixtures.
"""

import logging
import os
import socket
import subprocess
import threading
import time
from typing import Generator, List, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from blankserver import BlankServer, ServerConfig
from blankserver.log import logger, access_logger, headers_logger


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample browser-style GET request."""
    return (
        b"GET /ads/banner.gif?id=7 HTTP/1.1\r\n"
        b"Host: ads.example.com\r\n"
        b"Referer: http://example.com/article\r\n"
        b"User-Agent: Mozilla/5.0 (X11; Linux x86_64)\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture(autouse=True)
def reset_loggers():
    """Undo configure_logging() so caplog sees records again."""
    yield
    for target in (logger, access_logger, headers_logger):
        for handler in list(target.handlers):
            target.removeHandler(handler)
        target.setLevel(logging.NOTSET)
        target.propagate = True


def exchange(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send data, half-close, and read everything until the server closes."""
    with socket.create_connection(('127.0.0.1', port), timeout=timeout) as s:
        if data:
            s.sendall(data)
        s.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


def wait_for_port(port: int, timeout: float = 10.0) -> None:
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            with socket.create_connection(('127.0.0.1', port), timeout=0.5) as s:
                s.shutdown(socket.SHUT_WR)
                s.recv(1024)
                return
        except OSError:
            time.sleep(0.1)
    raise RuntimeError("Server failed to start")


class ThreadedServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, config: ServerConfig):
        self.server = BlankServer(config)
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"install_signals": False},
            daemon=True,
        )
        self._thread.start()
        if not self.server.socket_server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    @property
    def stopped(self) -> bool:
        return self._thread is not None and not self._thread.is_alive()


@pytest.fixture
def make_server() -> Generator:
    """Factory for serial-mode servers on an ephemeral port."""
    started: List[ThreadedServer] = []

    def factory(**overrides) -> ThreadedServer:
        settings = dict(host="127.0.0.1", port=0, poll_interval=0.05)
        settings.update(overrides)
        srv = ThreadedServer(ServerConfig(**settings))
        srv.start()
        started.append(srv)
        return srv

    yield factory

    for srv in started:
        srv.stop()


@pytest.fixture
def test_server(make_server) -> ThreadedServer:
    """A running serial-mode server."""
    return make_server()


class CLIProcess:
    """Runs `python -m blankserver` as a real process."""

    def __init__(self, args: List[str]):
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            p for p in (str(SRC_DIR), env.get("PYTHONPATH")) if p
        )
        self.proc = subprocess.Popen(
            [sys.executable, "-m", "blankserver", *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
        )

    def wait(self, timeout: float = 10.0):
        try:
            out, err = self.proc.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            self.proc.kill()
            out, err = self.proc.communicate()
        return self.proc.returncode, out.decode(), err.decode()

    def kill(self):
        if self.proc.poll() is None:
            self.proc.kill()
            self.proc.communicate()


@pytest.fixture
def run_cli() -> Generator:
    processes: List[CLIProcess] = []

    def factory(*args: str) -> CLIProcess:
        proc = CLIProcess(list(args))
        processes.append(proc)
        return proc

    yield factory

    for proc in processes:
        proc.kill()


@pytest.fixture
def http_exchange():
    """exchange(port, data) -> every byte the server sent back."""
    return exchange


@pytest.fixture
def port_ready():
    """wait_for_port(port) -> returns once something is listening."""
    return wait_for_port

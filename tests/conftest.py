from __future__ import annotations

from typing import Callable, Dict, List, Optional, Set, Tuple

import pytest

from hostscript.errors import ConnectError, SessionError


class FakeSession:
    def __init__(self, transport: "FakeTransport", host: str):
        self.transport = transport
        self.host = host
        self.pty: Optional[Tuple[int, int, bool]] = None
        self.input = b""
        self.ran = False

    def request_pty(self, width: int, height: int, echo: bool = False) -> None:
        self.pty = (width, height, echo)
        self.transport.events.append(("pty", self.host, width, height, echo))

    def set_input(self, data: bytes) -> None:
        self.input = data
        self.transport.events.append(("input", self.host, data))

    def run(self, command: str) -> Tuple[int, bytes]:
        assert not self.ran, "sessions must not be reused"
        self.ran = True
        self.transport.events.append(("run", self.host, command))
        self.transport.runs.append((self.host, command, self.input, self.pty))
        hook = self.transport.hooks.get((self.host, command))
        if hook is not None:
            hook()
        return self.transport.results.get((self.host, command), (0, b""))


class FakeConnection:
    def __init__(self, transport: "FakeTransport", host: str):
        self.transport = transport
        self.host = host
        self.closed = False

    def open_session(self) -> FakeSession:
        if self.host in self.transport.fail_session:
            raise SessionError("channel open failed")
        self.transport.events.append(("session", self.host))
        return FakeSession(self.transport, self.host)

    def close(self) -> None:
        self.closed = True
        self.transport.events.append(("close", self.host))


class FakeTransport:
    """Stands in for ``hostscript.remote.ssh_transport.connect``."""

    def __init__(self) -> None:
        self.results: Dict[Tuple[str, str], Tuple[int, bytes]] = {}
        self.fail_connect: Set[str] = set()
        self.fail_session: Set[str] = set()
        # called while a command "runs", keyed like results
        self.hooks: Dict[Tuple[str, str], Callable[[], None]] = {}
        self.events: List[tuple] = []
        self.runs: List[tuple] = []
        self.passwords: List[Optional[str]] = []

    def __call__(self, host, password):
        self.passwords.append(password)
        self.events.append(("connect", host.host))
        if host.host in self.fail_connect:
            raise ConnectError("connection refused")
        return FakeConnection(self, host.host)

    def commands(self, host: Optional[str] = None) -> List[str]:
        return [cmd for h, cmd, _inp, _pty in self.runs if host is None or h == host]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()

"""SSH transport built on paramiko.

One ``SSHConnection`` is opened per host and a fresh ``SSHSession`` (channel)
per command, so shell state such as the working directory never leaks from
one command to the next.

Password prompts (``sudo``) need a terminal, so every session requests a pty
before running its command. Terminal echo is switched off in the pty request
itself; otherwise the password fed on stdin would be echoed back into the
captured output.
"""

from __future__ import annotations

import logging
import socket
import struct
from dataclasses import asdict, dataclass
from typing import Dict, Mapping, Optional, Tuple

import paramiko
from paramiko.common import cMSG_CHANNEL_REQUEST
from paramiko.message import Message

from ..errors import CommandError, ConnectError, SessionError

log = logging.getLogger(__name__)

# RFC 4254 section 8 opcodes
TTY_OP_END = 0
ECHO = 53
TTY_OP_ISPEED = 128
TTY_OP_OSPEED = 129

DEFAULT_TERM = "xterm"
DEFAULT_WIDTH = 80
DEFAULT_HEIGHT = 40
_RECV_CHUNK = 32768


def encode_terminal_modes(modes: Mapping[int, int]) -> bytes:
    """Encode terminal modes for a ``pty-req``: (opcode byte, uint32) pairs + TTY_OP_END."""

    out = b"".join(struct.pack(">BI", int(op), int(val)) for op, val in modes.items())
    return out + bytes([TTY_OP_END])


def terminal_modes(echo: bool = False) -> Dict[int, int]:
    return {
        ECHO: 1 if echo else 0,
        TTY_OP_ISPEED: 14400,  # input speed = 14.4kbaud
        TTY_OP_OSPEED: 14400,
    }


@dataclass
class HostConfig:
    """Connection settings for one host (no secrets)."""

    host: str
    user: str = ""
    port: int = 22
    strict_host_keys: bool = False
    connect_timeout: Optional[float] = None

    @property
    def user_host(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host

    @property
    def user_host_pretty(self) -> str:
        """Human-friendly host string including a non-default port."""
        port = int(self.port or 22)
        return self.user_host if port == 22 else f"{self.user_host}:{port}"

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, object]) -> "HostConfig":
        timeout = d.get("connect_timeout")
        return HostConfig(
            host=str(d.get("host", "")),
            user=str(d.get("user", "")),
            port=int(d.get("port", 22) or 22),
            strict_host_keys=bool(d.get("strict_host_keys", False)),
            connect_timeout=float(timeout) if timeout is not None else None,
        )


class SSHSession:
    """One remote command execution on its own channel."""

    def __init__(self, channel: paramiko.Channel):
        self._channel = channel
        self._input = b""

    def request_pty(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        echo: bool = False,
        term: str = DEFAULT_TERM,
    ) -> None:
        # Channel.get_pty() always sends an empty mode list, so the request is
        # built here to carry ECHO=0.
        chan = self._channel
        m = Message()
        m.add_byte(cMSG_CHANNEL_REQUEST)
        m.add_int(chan.remote_chanid)
        m.add_string("pty-req")
        m.add_boolean(True)
        m.add_string(term)
        m.add_int(width)
        m.add_int(height)
        m.add_int(0)
        m.add_int(0)
        m.add_string(encode_terminal_modes(terminal_modes(echo=echo)))
        try:
            chan._event_pending()
            chan.transport._send_user_message(m)
            chan._wait_for_event()
        except (paramiko.SSHException, OSError) as e:
            chan.close()
            raise SessionError(f"request pty failed: {e}") from e

    def set_input(self, data: bytes) -> None:
        self._input = data

    def run(self, command: str) -> Tuple[int, bytes]:
        """Run ``command`` and return (exit_status, combined stdout/stderr).

        Blocks until the remote side closes the channel.
        """

        chan = self._channel
        chunks = []
        try:
            chan.set_combine_stderr(True)
            chan.exec_command(command)
            if self._input:
                chan.sendall(self._input)
            chan.shutdown_write()
            while True:
                data = chan.recv(_RECV_CHUNK)
                if not data:
                    break
                chunks.append(data)
            rc = chan.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise CommandError(f"command failed: {e}", command=command) from e
        finally:
            chan.close()
        return int(rc), b"".join(chunks)


class SSHConnection:
    """An authenticated connection to one host."""

    def __init__(self, host: HostConfig, client: paramiko.SSHClient):
        self.host = host
        self._client = client

    def open_session(self) -> SSHSession:
        transport = self._client.get_transport()
        if transport is None or not transport.is_active():
            raise SessionError(f"connection to {self.host.user_host_pretty} is closed")
        try:
            return SSHSession(transport.open_session())
        except (paramiko.SSHException, OSError) as e:
            raise SessionError(f"failed to open session on {self.host.user_host_pretty}: {e}") from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SSHConnection":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def connect(host: HostConfig, password: Optional[str] = None) -> SSHConnection:
    """Dial ``host`` and authenticate.

    With a password, password authentication is used; without one, paramiko
    falls back to the SSH agent and the default key files.
    """

    client = paramiko.SSHClient()
    client.load_system_host_keys()
    if host.strict_host_keys:
        client.set_missing_host_key_policy(paramiko.RejectPolicy())
    else:
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    kwargs: Dict[str, object] = {
        "hostname": host.host,
        "port": int(host.port or 22),
        "username": host.user or None,
        "timeout": host.connect_timeout,
    }
    if password:
        kwargs.update(password=password, look_for_keys=False, allow_agent=False)

    log.debug("connecting to %s", host.user_host_pretty)
    try:
        client.connect(**kwargs)
    except (paramiko.SSHException, socket.error) as e:
        client.close()
        raise ConnectError(str(e) or type(e).__name__) from e
    return SSHConnection(host, client)

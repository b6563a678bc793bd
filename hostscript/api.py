"""Public API surface.

Re-exports the pieces most scripts need so they can import a single module.
"""

from __future__ import annotations

from . import __version__

# Errors
from .errors import (
    CommandError,
    ConfigError,
    ConnectError,
    HostscriptError,
    LoadError,
    ParseError,
    SessionError,
)

# Script files
from .scripts import Script, Scriptfile, cleanup, load, parse, read, requires_password

# Stdin construction
from .stdin_utils import PASSWORD_PLACEHOLDER, build_stdin, combine, substitute

# Transport
from .remote.ssh_transport import HostConfig, SSHConnection, SSHSession, connect

# Orchestration
from .config import RunConfig, host_configs, parse_hosts, validate, validate_scriptfiles
from .reporter import NO_OUTPUT, BufferedReporter, ConsoleReporter
from .runner import execute_script, execute_scriptfile, run, run_host

__all__ = [
    "__version__",
    "BufferedReporter",
    "CommandError",
    "ConfigError",
    "ConnectError",
    "ConsoleReporter",
    "HostConfig",
    "HostscriptError",
    "LoadError",
    "NO_OUTPUT",
    "PASSWORD_PLACEHOLDER",
    "ParseError",
    "RunConfig",
    "SSHConnection",
    "SSHSession",
    "Script",
    "Scriptfile",
    "SessionError",
    "build_stdin",
    "cleanup",
    "combine",
    "connect",
    "execute_script",
    "execute_scriptfile",
    "host_configs",
    "load",
    "parse",
    "parse_hosts",
    "read",
    "requires_password",
    "run",
    "run_host",
    "substitute",
    "validate",
    "validate_scriptfiles",
]

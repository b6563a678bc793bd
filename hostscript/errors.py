"""Exception types raised while loading scripts and running them remotely.

Every error is re-raised with context (file name or host) on its way up;
only the CLI catches them.
"""

from __future__ import annotations

from typing import Optional


class HostscriptError(Exception):
    """Base class for all errors raised by hostscript."""


class ConfigError(HostscriptError):
    """Invalid or contradictory command-line / settings values."""


class ParseError(HostscriptError):
    """A script file is malformed (e.g. a block without a command)."""


class LoadError(HostscriptError):
    """Script files could not be found or read."""


class ConnectError(HostscriptError):
    """A host could not be reached or refused authentication."""


class SessionError(HostscriptError):
    """A remote execution channel could not be opened or prepared."""


class CommandError(HostscriptError):
    """A remote command failed or its execution was interrupted."""

    def __init__(self, message: str, exit_status: Optional[int] = None, command: str = ""):
        super().__init__(message)
        self.exit_status = exit_status
        self.command = command

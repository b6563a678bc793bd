"""Run configuration.

``RunConfig`` is built once from the command line (and stored defaults) and
then passed explicitly to whatever needs it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import ConfigError
from .remote.ssh_transport import HostConfig
from .scripts import Scriptfile, requires_password

_HOST_SPLIT_RE = re.compile(r"[,\s]+")


@dataclass(frozen=True)
class RunConfig:
    user: str
    hosts: Tuple[str, ...]
    scriptdir: Optional[str] = None
    command: Optional[str] = None
    pw: bool = False
    no_password: bool = False
    verbose: bool = False
    port: int = 22
    strict_host_keys: bool = False
    connect_timeout: Optional[float] = None
    parallel: int = 1


def parse_hosts(hostexp: str) -> List[str]:
    """Split a host expression on commas/whitespace, keeping first occurrences."""

    seen = set()
    hosts: List[str] = []
    for h in _HOST_SPLIT_RE.split(hostexp or ""):
        if h and h not in seen:
            seen.add(h)
            hosts.append(h)
    return hosts


def validate(cfg: RunConfig) -> None:
    if not cfg.hosts:
        raise ConfigError("--hosts is required")

    if not cfg.user:
        raise ConfigError("--user or $USER must be set")

    if not cfg.scriptdir and not cfg.command:
        raise ConfigError("--scripts or --command is required")

    if cfg.scriptdir and cfg.command:
        raise ConfigError("only one of --scripts or --command allowed")

    if not cfg.command and cfg.pw:
        raise ConfigError("--pw only allowed in conjunction with --command")

    if cfg.pw and cfg.no_password:
        raise ConfigError("--pw cannot be combined with --no-password")

    if cfg.parallel < 1:
        raise ConfigError("--parallel must be at least 1")

    if not 0 < cfg.port < 65536:
        raise ConfigError(f"invalid --port {cfg.port}")


def validate_scriptfiles(cfg: RunConfig, files: Iterable[Scriptfile]) -> None:
    """Reject privileged script files when no password will be available."""

    if not cfg.no_password:
        return
    for sf in files:
        if requires_password(sf):
            raise ConfigError(f"script {sf.name} uses sudo and needs a password; drop --no-password")


def host_configs(cfg: RunConfig) -> List[HostConfig]:
    """Build per-host connection settings; ``host:port`` overrides ``--port``."""

    out: List[HostConfig] = []
    for entry in cfg.hosts:
        host, port = entry, cfg.port
        if entry.count(":") == 1:
            name, _, port_s = entry.partition(":")
            try:
                host, port = name, int(port_s)
            except ValueError as e:
                raise ConfigError(f"invalid port in host {entry!r}") from e
        out.append(
            HostConfig(
                host=host,
                user=cfg.user,
                port=port,
                strict_host_keys=cfg.strict_host_keys,
                connect_timeout=cfg.connect_timeout,
            )
        )
    return out

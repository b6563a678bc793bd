"""Command line interface for hostscript."""

from __future__ import annotations

import argparse
import getpass
import logging
import os
from typing import List, Optional

from . import __version__
from .config import RunConfig, host_configs, parse_hosts, validate, validate_scriptfiles
from .errors import ConfigError, HostscriptError
from .log_utils import setup_logging
from .remote.ssh_transport import connect
from .reporter import ConsoleReporter
from .runner import run
from .scripts import Script, Scriptfile, load
from .settings import SettingsStore
from .stdin_utils import PASSWORD_PLACEHOLDER

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="hostscript",
        description="Run script files (or a single command) on a list of hosts over SSH.",
    )
    ap.add_argument("--user", type=str, default=None, help="ssh username (default: saved user, then $USER)")
    ap.add_argument("--hosts", type=str, default=None, help="the list of hosts, separated by commas or spaces")
    ap.add_argument("--scripts", type=str, default=None, help="the directory full of scripts")
    ap.add_argument("--command", type=str, default=None, help="the command to run")
    ap.add_argument("--pw", action="store_true", help="send password on stdin after running --command")
    ap.add_argument("--no-password", action="store_true", help="skip the password prompt (use agent/keys)")

    ap.add_argument("--port", type=int, default=None, help="ssh port (default 22; host:port overrides)")
    ap.add_argument("--strict-host-keys", action="store_true", help="reject hosts missing from known_hosts")
    ap.add_argument("--connect-timeout", type=float, default=None, help="TCP connect timeout in seconds")
    ap.add_argument("--parallel", type=int, default=1, help="number of hosts to run concurrently")

    ap.add_argument("--remember", action="store_true", help="save --user/--hosts/--port as defaults")
    ap.add_argument("-v", "--verbose", action="store_true", help="verbose mode")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def build_config(args: argparse.Namespace, settings: dict) -> RunConfig:
    user = args.user or settings.get("user") or os.environ.get("USER", "")
    hostexp = args.hosts if args.hosts is not None else (settings.get("hosts") or "")
    port = args.port if args.port is not None else int(settings.get("port") or 22)
    return RunConfig(
        user=user,
        hosts=tuple(parse_hosts(hostexp)),
        scriptdir=args.scripts,
        command=args.command,
        pw=bool(args.pw),
        no_password=bool(args.no_password),
        verbose=bool(args.verbose),
        port=port,
        strict_host_keys=bool(args.strict_host_keys or settings.get("strict_host_keys")),
        connect_timeout=args.connect_timeout,
        parallel=int(args.parallel),
    )


def command_scriptfile(cfg: RunConfig) -> Scriptfile:
    stdin = (PASSWORD_PLACEHOLDER,) if cfg.pw else ()
    return Scriptfile(name="command", scripts=(Script(command=(cfg.command or "").strip(), stdin=stdin),))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    reporter = ConsoleReporter()
    store = SettingsStore()

    try:
        cfg = build_config(args, store.load())
        validate(cfg)
        hosts = host_configs(cfg)

        files = load(cfg.scriptdir) if cfg.scriptdir else [command_scriptfile(cfg)]
        validate_scriptfiles(cfg, files)
    except ConfigError as e:
        reporter.error(f"error: {e}")
        return 2
    except HostscriptError as e:
        reporter.error(f"error: {e}")
        return 1

    if args.remember:
        store.update({"user": cfg.user, "hosts": ",".join(cfg.hosts), "port": cfg.port})
        log.info("saved defaults to %s", store.path())

    try:
        password = None if cfg.no_password else getpass.getpass(f"password for {cfg.user}: ")
    except EOFError:
        reporter.error("error: no password available")
        return 1
    except KeyboardInterrupt:
        reporter.error("interrupted")
        return 130

    try:
        run(cfg.user, password, hosts, files, reporter, connect=connect, parallel=cfg.parallel)
    except HostscriptError as e:
        reporter.error(f"error: {e}")
        return 1
    except KeyboardInterrupt:
        reporter.error("interrupted")
        return 130
    return 0

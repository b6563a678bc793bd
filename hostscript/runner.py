"""Run parsed script files against hosts.

Hosts are visited in order; on each host every script file runs in order, and
every script inside it gets its own remote session. The first failure stops
the whole run. Output already printed for earlier commands stays in the
transcript.

With ``parallel > 1`` each host runs in its own worker thread with its own
connection. Commands on one host still run strictly one after another, and a
host's transcript is printed as one block once that host is done.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Protocol, Sequence, Tuple, Union

from .errors import CommandError, ConnectError, HostscriptError, SessionError
from .log_utils import sanitize_log
from .remote.ssh_transport import DEFAULT_HEIGHT, DEFAULT_WIDTH, HostConfig
from .remote.ssh_transport import connect as ssh_connect
from .reporter import NO_OUTPUT, BufferedReporter, Reporter
from .scripts import Script, Scriptfile
from .stdin_utils import build_stdin

log = logging.getLogger(__name__)


class Session(Protocol):
    def request_pty(self, width: int, height: int, echo: bool = False) -> None: ...

    def set_input(self, data: bytes) -> None: ...

    def run(self, command: str) -> Tuple[int, bytes]: ...


class Connection(Protocol):
    def open_session(self) -> Session: ...

    def close(self) -> None: ...


Connect = Callable[[HostConfig, Optional[str]], Connection]


def execute_script(conn: Connection, password: str, sc: Script, reporter: Reporter) -> None:
    reporter.emphasis(f"executing command `{sc.command}`")

    session = conn.open_session()
    session.set_input(build_stdin(sc.stdin, password))
    session.request_pty(DEFAULT_WIDTH, DEFAULT_HEIGHT, echo=False)

    rc, raw = session.run(sc.command)

    # print the output regardless of the exit status
    output = sanitize_log(raw.decode("utf-8", errors="replace")).strip()
    reporter.output(output or NO_OUTPUT)

    if rc != 0:
        raise CommandError(f"command `{sc.command}` exited with status {rc}", exit_status=rc, command=sc.command)


def execute_scriptfile(
    conn: Connection,
    password: str,
    sf: Scriptfile,
    reporter: Reporter,
    stop: Optional[threading.Event] = None,
) -> bool:
    """Run the scripts of one file; return False if ``stop`` cut it short."""

    reporter.info(f"script file {sf.name}")
    for sc in sf.scripts:
        if stop is not None and stop.is_set():
            log.debug("stop requested; skipping `%s`", sc.command)
            return False
        execute_script(conn, password, sc, reporter)
    return True


def _rewrap(e: HostscriptError, message: str) -> HostscriptError:
    if isinstance(e, CommandError):
        return CommandError(message, exit_status=e.exit_status, command=e.command)
    return type(e)(message)


def run_host(
    host: HostConfig,
    password: Optional[str],
    files: Sequence[Scriptfile],
    reporter: Reporter,
    connect: Connect = ssh_connect,
    stop: Optional[threading.Event] = None,
) -> None:
    """Run every script file on one host over a single connection.

    Returns early, without error, once ``stop`` is set.
    """

    label = host.user_host_pretty
    reporter.banner(f"--- {label}")

    try:
        conn = connect(host, password)
    except HostscriptError as e:
        raise ConnectError(f"failed to dial host {label}: {e}") from e

    log.debug("connected to %s", label)
    try:
        for sf in files:
            try:
                completed = execute_scriptfile(conn, password or "", sf, reporter, stop)
            except (SessionError, CommandError) as e:
                raise _rewrap(e, f"failed to run {sf} on {label}: {e}") from e
            if not completed:
                reporter.info(f"stopped on {label} after an error on another host")
                return
            reporter.blank()
    finally:
        conn.close()


def run(
    user: str,
    password: Optional[str],
    hosts: Sequence[Union[str, HostConfig]],
    files: Sequence[Scriptfile],
    reporter: Reporter,
    connect: Connect = ssh_connect,
    parallel: int = 1,
    stop: Optional[threading.Event] = None,
) -> None:
    """Run ``files`` on every host; raise the first error encountered.

    ``stop`` is set as soon as any host fails: hosts that have not started
    are skipped, and running hosts stop before their next command.
    """

    targets = [h if isinstance(h, HostConfig) else HostConfig(host=h, user=user) for h in hosts]
    log.info("running %d script file(s) on %d host(s)", len(files), len(targets))
    stop = stop if stop is not None else threading.Event()

    if parallel <= 1 or len(targets) <= 1:
        for host in targets:
            if stop.is_set():
                return
            run_host(host, password, files, reporter, connect, stop)
        return

    lock = threading.Lock()

    def worker(host: HostConfig) -> None:
        if stop.is_set():
            log.debug("skipping %s after an earlier failure", host.user_host_pretty)
            return
        buf = BufferedReporter()
        try:
            run_host(host, password, files, buf, connect, stop)
        except BaseException:
            stop.set()
            raise
        finally:
            with lock:
                buf.replay(reporter)

    with ThreadPoolExecutor(max_workers=parallel, thread_name_prefix="hostscript") as pool:
        futures = [pool.submit(worker, host) for host in targets]

    # all workers are done; report the first failure in host order
    for fut in futures:
        fut.result()

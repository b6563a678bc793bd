from __future__ import annotations

import threading

import pytest

from hostscript.errors import CommandError, ConnectError, SessionError
from hostscript.remote.ssh_transport import HostConfig
from hostscript.reporter import NO_OUTPUT, BufferedReporter
from hostscript.runner import run
from hostscript.scripts import parse


def _transcript(rep: BufferedReporter):
    return [(kind, args[0] if args else None) for kind, args in rep.events]


def test_runs_every_script_on_every_host_in_order(transport) -> None:
    files = [
        parse("10-a", "echo alpha\n---\nwhoami"),
        parse("20-b", "uptime"),
    ]
    rep = BufferedReporter()

    run("bob", "pw", ["h1", "h2"], files, rep, connect=transport)

    assert [(h, c) for h, c, _i, _p in transport.runs] == [
        ("h1", "echo alpha"),
        ("h1", "whoami"),
        ("h1", "uptime"),
        ("h2", "echo alpha"),
        ("h2", "whoami"),
        ("h2", "uptime"),
    ]
    assert transport.passwords == ["pw", "pw"]
    assert [e for e in transport.events if e[0] in ("connect", "close")] == [
        ("connect", "h1"),
        ("close", "h1"),
        ("connect", "h2"),
        ("close", "h2"),
    ]


def test_one_session_per_command_with_pty_before_run(transport) -> None:
    files = [parse("f", "sudo whoami\nPASSWORD\n---\nls")]

    run("bob", "s3cret", ["h1"], files, BufferedReporter(), connect=transport)

    per_host = [e[0] for e in transport.events if e[0] != "connect" and e[0] != "close"]
    assert per_host == ["session", "input", "pty", "run", "session", "input", "pty", "run"]
    _host, cmd, stdin, pty = transport.runs[0]
    assert cmd == "sudo whoami"
    assert stdin == b"s3cret\n"
    assert pty == (80, 40, False)
    assert transport.runs[1][2] == b""


def test_transcript_reports_output_and_placeholder(transport) -> None:
    transport.results[("h1", "echo alpha")] = (0, b"alpha\r\n")
    files = [parse("f", "echo alpha\n---\ntrue")]
    rep = BufferedReporter()

    run("bob", "pw", ["h1"], files, rep, connect=transport)

    assert _transcript(rep) == [
        ("banner", "--- bob@h1"),
        ("info", "script file f"),
        ("emphasis", "executing command `echo alpha`"),
        ("output", "alpha"),
        ("emphasis", "executing command `true`"),
        ("output", NO_OUTPUT),
        ("blank", None),
    ]


def test_failure_stops_everything_after_it(transport) -> None:
    transport.results[("h1", "false")] = (1, b"boom\n")
    files = [
        parse("10-a", "echo one\n---\nfalse\n---\necho never"),
        parse("20-b", "echo never either"),
    ]
    rep = BufferedReporter()

    with pytest.raises(CommandError) as exc:
        run("bob", "pw", ["h1", "h2"], files, rep, connect=transport)

    assert exc.value.exit_status == 1
    assert exc.value.command == "false"
    assert "failed to run 10-a on bob@h1" in str(exc.value)
    assert transport.commands() == ["echo one", "false"]
    # output of the failing command was still reported
    assert ("output", "boom") in _transcript(rep)
    assert ("connect", "h2") not in transport.events
    assert ("close", "h1") in transport.events


def test_connect_failure_aborts_run(transport) -> None:
    transport.fail_connect.add("h1")

    with pytest.raises(ConnectError, match="failed to dial host bob@h1"):
        run("bob", "pw", ["h1", "h2"], [parse("f", "ls")], BufferedReporter(), connect=transport)

    assert transport.runs == []
    assert ("connect", "h2") not in transport.events


def test_session_failure_aborts_run(transport) -> None:
    transport.fail_session.add("h1")

    with pytest.raises(SessionError, match="failed to run f on bob@h1"):
        run("bob", "pw", ["h1", "h2"], [parse("f", "ls")], BufferedReporter(), connect=transport)

    assert ("close", "h1") in transport.events
    assert ("connect", "h2") not in transport.events


def test_host_configs_are_used_as_given(transport) -> None:
    host = HostConfig(host="h9", user="alice", port=2222)
    rep = BufferedReporter()

    run("ignored", None, [host], [parse("f", "ls")], rep, connect=transport)

    assert rep.events[0] == ("banner", ("--- alice@h9:2222",))
    assert transport.passwords == [None]


def test_parallel_keeps_host_output_together(transport) -> None:
    for h in ("h1", "h2", "h3"):
        transport.results[(h, "hostname")] = (0, h.encode())
    files = [parse("f", "hostname\n---\nuptime")]
    rep = BufferedReporter()

    run("bob", "pw", ["h1", "h2", "h3"], files, rep, connect=transport, parallel=3)

    transcript = _transcript(rep)
    banners = [i for i, (kind, _t) in enumerate(transcript) if kind == "banner"]
    assert len(banners) == 3
    for start in banners:
        host = transcript[start][1].split("@")[1]
        block = transcript[start : start + 7]
        assert ("output", host) in block
    assert sorted(transport.commands()) == sorted(["hostname", "uptime"] * 3)


def test_parallel_reports_first_failing_host(transport) -> None:
    transport.results[("h2", "ls")] = (2, b"")
    transport.results[("h3", "ls")] = (3, b"")

    with pytest.raises(CommandError) as exc:
        run("bob", "pw", ["h1", "h2", "h3"], [parse("f", "ls")], BufferedReporter(), connect=transport, parallel=2)

    assert exc.value.exit_status == 2


def test_parallel_failure_stops_remaining_hosts(transport) -> None:
    stop = threading.Event()
    transport.results[("h1", "ls")] = (1, b"boom")
    # h2 is busy until h1 has failed
    transport.hooks[("h2", "ls")] = lambda: stop.wait(5)
    files = [parse("f", "ls\n---\nuptime")]
    hosts = ["h1", "h2", "h3", "h4", "h5"]

    with pytest.raises(CommandError) as exc:
        run("bob", "pw", hosts, files, BufferedReporter(), connect=transport, parallel=2, stop=stop)

    assert "on bob@h1" in str(exc.value)
    assert stop.is_set()
    connected = [e[1] for e in transport.events if e[0] == "connect"]
    assert "h1" in connected
    assert not {"h3", "h4", "h5"} & set(connected)
    # the host that was running stops before its next command
    assert "uptime" not in transport.commands()


def test_stop_already_set_runs_nothing(transport) -> None:
    stop = threading.Event()
    stop.set()

    run("bob", "pw", ["h1", "h2"], [parse("f", "ls")], BufferedReporter(), connect=transport, stop=stop)

    assert transport.events == []

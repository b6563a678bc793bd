"""Transcript output.

The runner only talks to a reporter; how lines look on the terminal is
decided here. ``ConsoleReporter`` prints with rich, ``BufferedReporter``
records calls so a host's transcript can be emitted as one unit.
"""

from __future__ import annotations

import threading
from typing import Any, List, Optional, Protocol, Tuple

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

NO_OUTPUT = "<no output>"

THEME = Theme(
    {
        "banner": "bold magenta",
        "info": "cyan",
        "emphasis": "yellow",
        "output": "blue",
        "placeholder": "magenta",
        "error": "bold red",
    }
)


class Reporter(Protocol):
    def banner(self, text: str) -> None: ...

    def info(self, text: str) -> None: ...

    def emphasis(self, text: str) -> None: ...

    def output(self, text: str) -> None: ...

    def blank(self) -> None: ...

    def error(self, text: str) -> None: ...


class ConsoleReporter:
    """Color-coded transcript on a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(theme=THEME, highlight=False, emoji=False, soft_wrap=True)
        self._lock = threading.Lock()

    def _print(self, style: str, text: str) -> None:
        with self._lock:
            self.console.print(f"[{style}]{escape(text)}[/{style}]")

    def banner(self, text: str) -> None:
        self._print("banner", text)

    def info(self, text: str) -> None:
        self._print("info", text)

    def emphasis(self, text: str) -> None:
        self._print("emphasis", text)

    def output(self, text: str) -> None:
        self._print("placeholder" if text == NO_OUTPUT else "output", text)

    def blank(self) -> None:
        with self._lock:
            self.console.print("")

    def error(self, text: str) -> None:
        self._print("error", text)


class BufferedReporter:
    """Record reporter calls and replay them later in one go."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Tuple[Any, ...]]] = []

    def _record(self, kind: str, *args: Any) -> None:
        self.events.append((kind, args))

    def banner(self, text: str) -> None:
        self._record("banner", text)

    def info(self, text: str) -> None:
        self._record("info", text)

    def emphasis(self, text: str) -> None:
        self._record("emphasis", text)

    def output(self, text: str) -> None:
        self._record("output", text)

    def blank(self) -> None:
        self._record("blank")

    def error(self, text: str) -> None:
        self._record("error", text)

    def replay(self, target: Reporter) -> None:
        for kind, args in self.events:
            getattr(target, kind)(*args)
        self.events.clear()

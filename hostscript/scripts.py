"""Script file parsing and loading.

A script file holds one or more blocks separated by a line containing only
``---``. In every block, blank lines and ``#`` comment lines are dropped; the
first remaining line is the command and every following line is fed to that
command on stdin::

    # restart the agent
    sudo systemctl restart agent
    PASSWORD
    ---
    uptime

The placeholder ``PASSWORD`` is replaced at run time (see ``stdin_utils``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Tuple, Union

from .errors import LoadError, ParseError

log = logging.getLogger(__name__)

DELIMITER = "---"
COMMENT = "#"
PRIVILEGED_KEYWORD = "sudo"


@dataclass(frozen=True)
class Script:
    command: str
    stdin: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Scriptfile:
    """A named, ordered list of scripts parsed from one file."""

    name: str
    scripts: Tuple[Script, ...]

    @property
    def sudo(self) -> bool:
        return requires_password(self)

    def __str__(self) -> str:
        return self.name


def cleanup(lines: List[str]) -> List[str]:
    """Trim lines and drop blanks and comments, keeping order."""

    cleansed: List[str] = []
    for dirty in lines:
        clean = dirty.strip()
        if not clean or clean.startswith(COMMENT):
            continue
        cleansed.append(clean)
    return cleansed


def _split_blocks(content: str) -> List[List[str]]:
    blocks: List[List[str]] = [[]]
    for line in content.split("\n"):
        if line.strip() == DELIMITER:
            blocks.append([])
        else:
            blocks[-1].append(line)
    return blocks


def parse(name: str, content: str) -> Scriptfile:
    """Parse the text of one script file.

    Raises ``ParseError`` if any block has no command line.
    """

    scripts: List[Script] = []
    for block in _split_blocks(content):
        lines = cleanup(block)
        if not lines:
            raise ParseError(f"no command in script {name}")
        scripts.append(Script(command=lines[0], stdin=tuple(lines[1:])))
    return Scriptfile(name=name, scripts=tuple(scripts))


def requires_password(scriptfile: Scriptfile) -> bool:
    """True if any command of the file mentions ``sudo``.

    This is a plain substring test, so ``sudoku`` counts as privileged too.
    """

    return any(PRIVILEGED_KEYWORD in s.command for s in scriptfile.scripts)


def read(name: str, path: Union[str, Path]) -> Scriptfile:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"failed to read script {path}: {e}") from e
    return parse(name, text.strip())


def _walk(directory: Path) -> Iterator[Path]:
    """Yield regular files under ``directory``; files and subdirectories are
    visited together in lexical order of their names."""

    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise LoadError(f"failed to read scripts: {e}") from e
    for entry in entries:
        if entry.is_dir():
            yield from _walk(entry)
        else:
            yield entry


def load(scriptdir: Union[str, Path]) -> List[Scriptfile]:
    """Load every file under ``scriptdir`` (recursively, lexical order)."""

    root = Path(scriptdir).expanduser()
    if not root.is_dir():
        raise LoadError(f"failed to read scripts: {root} is not a directory")

    files: List[Scriptfile] = []
    for path in _walk(root):
        try:
            files.append(read(path.name, path))
        except ParseError as e:
            raise ParseError(f"failed to read script file {path.name}: {e}") from e
        log.debug("loaded %s (%d scripts)", path, len(files[-1].scripts))

    if not files:
        raise LoadError("no scripts found")
    return files

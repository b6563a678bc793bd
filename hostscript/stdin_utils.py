"""Build the text fed to a remote command's stdin."""

from __future__ import annotations

from typing import Dict, Iterable, List

PASSWORD_PLACEHOLDER = "PASSWORD"


def substitute(stdin: Iterable[str], substitutions: Dict[str, str]) -> List[str]:
    """Replace every placeholder occurrence in every line (literal, non-recursive)."""

    replaced: List[str] = []
    for line in stdin:
        for old, new in substitutions.items():
            line = line.replace(old, new)
        replaced.append(line)
    return replaced


def combine(stdin: Iterable[str]) -> str:
    return "".join(f"{line}\n" for line in stdin)


def build_stdin(stdin: Iterable[str], password: str) -> bytes:
    return combine(substitute(stdin, {PASSWORD_PLACEHOLDER: password})).encode("utf-8")

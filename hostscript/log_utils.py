"""Logging-related utilities.

Output captured through a pty arrives with CRLF line endings and, for many
tools, color escape sequences. ``sanitize_log`` turns it into plain text
before it is shown in the transcript.
"""

from __future__ import annotations

import logging
import re
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

# A reasonably complete ANSI escape sequence matcher (CSI + single-character).
_ANSI_ESCAPE_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def sanitize_log(text: str) -> str:
    """Sanitize captured command output.

    - Normalize carriage returns (``\\r``) into newlines (``\\n``), so progress
      output and pty line endings become readable.
    - Strip ANSI escape sequences (colors, cursor movement, etc.).

    The function is conservative: it never drops content, it only normalizes
    formatting artifacts.
    """

    if not text:
        return ""

    # Normalize CR to NL (including CRLF).
    text = text.replace("\r\n", "\n").replace("\r", "\n")

    # Strip ANSI control sequences.
    return _ANSI_ESCAPE_RE.sub("", text)


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for the CLI (stderr, INFO or DEBUG)."""

    root = logging.getLogger()
    # Don't clobber an existing logging configuration (e.g. when embedded).
    if root.handlers:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    # paramiko is chatty at DEBUG; keep it to warnings unless asked.
    logging.getLogger("paramiko").setLevel(logging.DEBUG if verbose else logging.WARNING)

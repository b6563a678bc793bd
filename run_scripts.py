#!/usr/bin/env python3
"""Convenience entry point.

Equivalent to the ``hostscript`` console script; handy when running from a
source checkout.
"""

from hostscript.cli import main as _main


if __name__ == "__main__":
    raise SystemExit(_main())

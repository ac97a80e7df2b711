"""CLI wrapper: Run linter."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run([sys.executable, "-m", "ruff", "check", "sop_script", "cli", "tests", *sys.argv[1:]])

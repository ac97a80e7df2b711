"""
Shared CLI runner helper.

Runs a tool inside the current environment and propagates its exit code.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence


def run(cmd: Sequence[str]) -> None:
    """
    Run a command and exit with its return code.

    Example:
        >>> run([sys.executable, "-m", "pytest", "-q"])
    """
    result = subprocess.run(cmd)
    raise SystemExit(result.returncode)

"""Shell utilities.

Provides simple wrappers around subprocess calls for querying the package
manager and running per-package commands, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from .errors import ProcessInvocationError


def capture(*args: str, cwd: Path | None = None) -> str:
    """Run a command and return its stdout.

    Used for package manager queries whose output we parse, e.g.
    `yarn --silent workspaces info`.

    Raises:
        ProcessInvocationError: If the command cannot be started.
        subprocess.CalledProcessError: If the command exits non-zero.
    """
    try:
        result = subprocess.run(
            args, cwd=cwd, capture_output=True, text=True, check=True
        )
    except OSError as exc:
        raise ProcessInvocationError(args[0], str(exc)) from exc
    return result.stdout


def run_in(args: list[str], cwd: Path) -> int:
    """Run a command in `cwd` and wait for it to finish.

    Stdin and stdout are discarded; stderr streams to the terminal so
    failures stay visible.

    Returns:
        The exit code. Negative values mean the process was killed by that
        signal number.

    Raises:
        ProcessInvocationError: If the command cannot be started at all.
    """
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            check=False,
        )
    except OSError as exc:
        raise ProcessInvocationError(args[0], str(exc)) from exc
    return result.returncode


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of a run in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def error(msg: str) -> None:
    """Print an error message to stderr without stopping the run."""
    print(f"ERROR: {msg}", file=sys.stderr)

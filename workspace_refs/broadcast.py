"""Run one command per package.

The command runs once per package, in the order given (usually reverse
topological, so dependents come before their dependencies). Every
occurrence of __PACKAGE__ in the arguments is replaced by
the current package name.

Commands run one at a time and a failure never stops the iteration: every
package gets its attempt and the caller decides what the statuses mean.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from .config import PACKAGE_PLACEHOLDER
from .errors import ProcessInvocationError
from .models import ExitStatus, WorkspaceGraph
from .shell import error, run_in

Runner = Callable[[list[str], Path], int]


def substitute(args: Sequence[str], package: str) -> list[str]:
    """Replace the package placeholder in every argument.

    Example:
        substitute(["test", "--scope=__PACKAGE__"], "pkg-a") → ["test", "--scope=pkg-a"]
    """
    return [arg.replace(PACKAGE_PLACEHOLDER, package) for arg in args]


def broadcast(
    order: Iterable[str],
    graph: WorkspaceGraph,
    command: str,
    args: Sequence[str] = (),
    *,
    root: Path = Path("."),
    runner: Runner = run_in,
) -> list[ExitStatus]:
    """Run `command args` in each package directory, in `order`.

    Args:
        order: Package names, in the order to run them.
        graph: Workspace graph giving each package's location.
        command: Program to run.
        args: Arguments; may contain the placeholder.
        root: Repository root the package locations are relative to.
        runner: Runs a command line in a directory and returns its exit code.

    Returns:
        One ExitStatus per package, in `order`.
    """
    statuses: list[ExitStatus] = []
    for name in order:
        resolved = [command, *substitute(args, name)]
        print(f"{name}: $ {' '.join(resolved)}")

        package = graph.get(name)
        if package is None:
            message = f"{name} is not a workspace package"
            error(message)
            statuses.append(ExitStatus(package=name, args=resolved, error=message))
            continue

        try:
            returncode = runner(resolved, root / package.location)
        except ProcessInvocationError as exc:
            error(f"{name}: {exc}")
            statuses.append(ExitStatus(package=name, args=resolved, error=str(exc)))
            continue
        statuses.append(ExitStatus(package=name, args=resolved, returncode=returncode))

    return statuses


def aggregate_exit_code(statuses: Iterable[ExitStatus]) -> int:
    """Return 1 if any invocation failed or could not start, else 0."""
    return 0 if all(status.ok for status in statuses) else 1

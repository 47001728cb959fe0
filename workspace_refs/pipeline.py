"""End-to-end runs: discover → graph → order → wire references / broadcast.

`run_references` wires the compile config of every package, then the
aggregate root compile config, then the root navigation config.
`run_foreach` runs a command in every package in reverse topological order.

Both build the workspace graph first. A malformed inventory or a dependency
cycle aborts the run before any file is written or command is started.
Per-package failures are reported and the run continues with the rest.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .broadcast import aggregate_exit_code, broadcast
from .config import Settings
from .errors import PersistedStateCorruptError
from .graph import build_graph, reverse_topo_sort, topo_sort
from .inventory import load_inventory
from .models import WorkspaceGraph
from .navigation import wire_navigation
from .references import FileConfigLocator, wire_package
from .shell import error, step


def discover_graph(root: Path, settings: Settings) -> WorkspaceGraph:
    """Load the inventory and build the graph, checking it for cycles.

    Raises:
        MalformedInventoryError: If the inventory is unusable.
        CyclicDependencyError: If the declared dependencies form a cycle.
    """
    graph = build_graph(load_inventory(settings.inventory, root))
    topo_sort(graph)
    return graph


def run_references(root: Path, settings: Settings) -> int:
    """Wire compile config references for the whole workspace.

    Returns:
        0 on success, 1 if any config could not be read.
    """
    graph = discover_graph(root, settings)
    locator = FileConfigLocator(root, settings.config_filename)

    step(f"Wiring {settings.config_filename} references")
    if settings.force_rewrite:
        print("  Force rewrite: every config is rewritten")

    failed: list[str] = []
    for package in [*graph.all(), graph.aggregate()]:
        try:
            wire_package(package, graph, locator, settings)
        except PersistedStateCorruptError as exc:
            error(f"{package.name}: {exc}")
            failed.append(package.name)

    step(f"Wiring {settings.navigation_filename} import paths")
    try:
        wire_navigation(graph, locator, settings)
    except PersistedStateCorruptError as exc:
        error(str(exc))
        failed.append(settings.navigation_filename)

    if failed:
        error(f"{len(failed)} config(s) could not be updated: {', '.join(failed)}")
        return 1
    return 0


def run_foreach(
    root: Path, settings: Settings, command: str, args: Sequence[str]
) -> int:
    """Run a command once per package, dependents first.

    Returns:
        0 if every invocation succeeded, 1 otherwise.
    """
    graph = discover_graph(root, settings)
    order = reverse_topo_sort(graph)

    step(f"Running {command} in {len(order)} packages")
    statuses = broadcast(order, graph, command, args, root=root)

    failures = [status for status in statuses if not status.ok]
    for status in failures:
        if status.error:
            print(f"  {status.package}: {status.error}")
        elif status.signal:
            print(f"  {status.package}: killed by signal {status.signal}")
        else:
            print(f"  {status.package}: exit code {status.returncode}")
    if failures:
        error(f"{len(failures)} of {len(statuses)} packages failed")
    return aggregate_exit_code(statuses)


def workspace_order(
    root: Path, settings: Settings, *, reverse: bool = False
) -> list[str]:
    """Return the package names in build order (or reversed)."""
    graph = discover_graph(root, settings)
    return reverse_topo_sort(graph) if reverse else topo_sort(graph)

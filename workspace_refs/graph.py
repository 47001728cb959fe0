"""Dependency graph utilities.

Builds the workspace graph from a raw inventory and provides topological
sorting. When package A depends on package B, B comes first in the sorted
order; reversing it puts every dependent before its dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from .errors import CyclicDependencyError, MalformedInventoryError
from .models import Package, WorkspaceGraph

# Visitation states for the depth-first search
_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


def build_graph(
    inventory: Mapping[str, Mapping[str, Any]],
    roots: Iterable[str] | None = None,
) -> WorkspaceGraph:
    """Build a WorkspaceGraph from a raw workspace inventory.

    Args:
        inventory: Map of package name → {"location": str,
                   "dependencies": [name, ...]}, in discovery order.
        roots: Packages forming the whole-repo aggregate. Defaults to every
               package in inventory order.

    Returns:
        The immutable graph.

    Raises:
        MalformedInventoryError: If an entry has no name or location, or a
            root is not part of the inventory.
    """
    packages: dict[str, Package] = {}
    for name, entry in inventory.items():
        if not name:
            raise MalformedInventoryError("Inventory entry without a package name")
        if not isinstance(entry, Mapping):
            raise MalformedInventoryError(
                f"Inventory entry for {name} is not an object: {entry!r}"
            )
        if not entry.get("location"):
            raise MalformedInventoryError(f"Inventory entry for {name} has no location")
        deps = entry.get("dependencies") or []
        if not isinstance(deps, (list, tuple)):
            raise MalformedInventoryError(
                f"Dependencies of {name} must be a list, got: {deps!r}"
            )
        try:
            packages[name] = Package(
                name=name, location=entry["location"], dependencies=tuple(deps)
            )
        except ValidationError as exc:
            raise MalformedInventoryError(
                f"Invalid inventory entry for {name}: {exc}"
            ) from exc

    root_names = tuple(packages) if roots is None else tuple(roots)
    unknown = [name for name in root_names if name not in packages]
    if unknown:
        raise MalformedInventoryError(f"Unknown root packages: {', '.join(unknown)}")

    return WorkspaceGraph(packages=packages, roots=root_names)


def topo_sort(graph: WorkspaceGraph) -> list[str]:
    """Topologically sort packages by their internal dependencies.

    Depth-first search with an explicit stack, so deep graphs do not hit the
    recursion limit. Packages are visited in inventory order and their
    dependencies in declared order, which makes the output deterministic.
    Dependencies outside the graph are ignored.

    Returns:
        Package names in build order (dependencies first).

    Raises:
        CyclicDependencyError: If a dependency cycle is detected. The error
            lists the members of the cycle.

    Example:
        If A depends on B, and B depends on C:
        topo_sort({A, B, C}) → [C, B, A]
    """
    state = {name: _UNVISITED for name in graph.packages}
    order: list[str] = []

    for start in graph.packages:
        if state[start] != _UNVISITED:
            continue
        state[start] = _IN_PROGRESS
        # Each frame is (package, iterator over its remaining dependencies)
        stack = [(start, iter(graph.dependencies_of(start)))]
        while stack:
            node, pending = stack[-1]
            for dep in pending:
                if dep not in state:
                    continue
                if state[dep] == _IN_PROGRESS:
                    path = [frame[0] for frame in stack]
                    raise CyclicDependencyError(path[path.index(dep) :])
                if state[dep] == _UNVISITED:
                    state[dep] = _IN_PROGRESS
                    stack.append((dep, iter(graph.dependencies_of(dep))))
                    break
            else:
                # All dependencies are done
                state[node] = _DONE
                order.append(node)
                stack.pop()

    return order


def reverse_topo_sort(graph: WorkspaceGraph) -> list[str]:
    """Return packages with every dependent before its dependencies."""
    return topo_sort(graph)[::-1]

"""Error types raised by workspace-refs.

Structural errors (bad inventory, dependency cycles) stop a run before any
work is done. Per-package errors (corrupt documents, commands that cannot be
started) are reported against that package and the run moves on.
"""

from __future__ import annotations

from pathlib import Path


class WorkspaceRefsError(RuntimeError):
    """Base class for all workspace-refs errors."""


class MalformedInventoryError(WorkspaceRefsError):
    """The workspace inventory has an entry without a name or location."""


class CyclicDependencyError(WorkspaceRefsError):
    """The declared dependencies form a cycle.

    Attributes:
        cycle: Cycle members in edge order. Each member depends on the next
               one and the last member depends on the first.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        chain = " → ".join([*cycle, cycle[0]]) if cycle else "<empty>"
        super().__init__(f"Dependency cycle detected: {chain}")


class PersistedStateCorruptError(WorkspaceRefsError):
    """An existing JSON document could not be parsed."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        super().__init__(f"Cannot parse {path}: {detail}")


class ProcessInvocationError(WorkspaceRefsError):
    """A command could not be started at all (as opposed to exiting non-zero)."""

    def __init__(self, command: str, detail: str) -> None:
        self.command = command
        super().__init__(f"Failed to start {command!r}: {detail}")


class SettingsError(WorkspaceRefsError):
    """The [tool.workspace-refs] table is invalid."""

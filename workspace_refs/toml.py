"""pyproject.toml readers.

The uv inventory reads member globs and package metadata from here, and the
settings loader reads the [tool.workspace-refs] table.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .errors import MalformedInventoryError, WorkspaceRefsError

TOOL_TABLE = "workspace-refs"


def load_pyproject(
    path: Path, error: type[WorkspaceRefsError] = MalformedInventoryError
) -> tomlkit.TOMLDocument:
    """Parse `path`, raising `error` (naming the file) if it is not valid TOML."""
    try:
        return tomlkit.parse(path.read_text())
    except TOMLKitError as exc:
        raise error(f"Cannot parse {path}: {exc}") from exc


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Return the PEP 503 name from [project].name, or `fallback`."""
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def dep_canonical_name(dep_str: str) -> str | None:
    """Name a PEP 508 requirement refers to ("My_Pkg[x]~=1.0" → "my-pkg").

    Returns None for strings that are not valid requirements.
    """
    try:
        return canonicalize_name(Requirement(dep_str).name)
    except InvalidRequirement:
        return None


def get_all_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Requirement strings a member declares anywhere, in file order.

    Runtime dependencies come first, then every extra, then every PEP 735
    group (include-group tables are not requirements and are skipped).
    """
    project = doc.get("project", {})
    deps: list[str] = list(project.get("dependencies", []))
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(group_deps)
    for group_deps in doc.get("dependency-groups", {}).values():
        deps.extend(str(dep) for dep in group_deps if isinstance(dep, str))
    return deps


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Return the [tool.uv.workspace] member patterns.

    Raises:
        MalformedInventoryError: If the root declares no members.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise MalformedInventoryError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return list(members)


def get_tool_table(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Return [tool.workspace-refs] as a plain dict (empty when absent)."""
    table = doc.get("tool", {}).get(TOOL_TABLE, {})
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)

"""Workspace inventory providers.

An inventory maps each package name to its location (relative to the repo
root) and its workspace dependency names:

    {"pkg-b": {"location": "packages/b", "dependencies": ["pkg-a"]}}

Two providers are supported: yarn workspaces (queried through the yarn CLI)
and uv workspaces (read from pyproject.toml files).
"""

from __future__ import annotations

import glob
import json
import subprocess
from pathlib import Path
from typing import Any

from .errors import MalformedInventoryError
from .shell import capture, step
from .toml import (
    dep_canonical_name,
    get_all_dependency_strings,
    get_project_name,
    get_workspace_member_globs,
    load_pyproject,
)

Inventory = dict[str, dict[str, Any]]


def yarn_inventory(root: Path) -> Inventory:
    """Query `yarn --silent workspaces info` and normalize its output.

    Raises:
        MalformedInventoryError: If yarn fails or prints something other than
            a JSON object.
    """
    try:
        output = capture("yarn", "--silent", "workspaces", "info", cwd=root)
    except subprocess.CalledProcessError as exc:
        raise MalformedInventoryError(
            f"`yarn workspaces info` exited with {exc.returncode}: {exc.stderr}"
        ) from exc
    try:
        workspaces = json.loads(output)
    except json.JSONDecodeError as exc:
        raise MalformedInventoryError(f"Unreadable yarn workspaces info: {exc}") from exc
    if not isinstance(workspaces, dict):
        raise MalformedInventoryError("yarn workspaces info is not a JSON object")

    inventory: Inventory = {}
    for name, workspace in workspaces.items():
        if not isinstance(workspace, dict):
            raise MalformedInventoryError(f"Invalid yarn workspace entry for {name}")
        inventory[name] = {
            "location": workspace.get("location"),
            "dependencies": list(workspace.get("workspaceDependencies") or []),
        }
    return inventory


def uv_inventory(root: Path) -> Inventory:
    """Scan a uv workspace and collect its packages.

    Reads [tool.uv.workspace].members from the root pyproject.toml to find
    package directories, then extracts the name and internal deps from each
    package's pyproject.toml. Only dependencies on other workspace members
    are kept, once each, in declaration order.
    """
    root_doc = load_pyproject(root / "pyproject.toml")
    member_globs = get_workspace_member_globs(root_doc)

    # Expand globs to find all package directories
    member_dirs: list[Path] = []
    for pattern in member_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists():
                member_dirs.append(p)

    if not member_dirs:
        raise MalformedInventoryError("No packages found matching workspace members")

    # First pass: names and locations
    inventory: Inventory = {}
    raw_deps: dict[str, list[str]] = {}
    for d in member_dirs:
        doc = load_pyproject(d / "pyproject.toml")
        name = get_project_name(doc, d.name)
        inventory[name] = {
            "location": d.relative_to(root).as_posix(),
            "dependencies": [],
        }
        raw_deps[name] = get_all_dependency_strings(doc)

    # Second pass: keep only internal deps
    for name, deps in raw_deps.items():
        internal = inventory[name]["dependencies"]
        for dep_str in deps:
            dep_name = dep_canonical_name(dep_str)
            if dep_name in inventory and dep_name not in internal:
                internal.append(dep_name)

    return inventory


PROVIDERS = {"yarn": yarn_inventory, "uv": uv_inventory}


def load_inventory(kind: str, root: Path) -> Inventory:
    """Load the inventory with the named provider and list what was found."""
    step(f"Discovering {kind} workspace packages")
    try:
        provider = PROVIDERS[kind]
    except KeyError:
        raise MalformedInventoryError(f"Unknown inventory provider: {kind}") from None

    inventory = provider(root)
    for name, entry in inventory.items():
        deps = entry["dependencies"]
        suffix = f" → [{', '.join(deps)}]" if deps else ""
        print(f"  {name} ({entry['location']}){suffix}")
    return inventory

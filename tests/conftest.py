"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from workspace_refs.config import Settings
from workspace_refs.graph import build_graph
from workspace_refs.models import WorkspaceGraph
from workspace_refs.references import FileConfigLocator

WriteJson = Callable[[str, Any], Path]


@pytest.fixture
def abc_inventory() -> dict[str, dict[str, Any]]:
    """A depends on nothing, B on A, C on A and B."""
    return {
        "A": {"location": "packages/a", "dependencies": []},
        "B": {"location": "packages/b", "dependencies": ["A"]},
        "C": {"location": "packages/c", "dependencies": ["A", "B"]},
    }


@pytest.fixture
def abc_graph(abc_inventory: dict[str, dict[str, Any]]) -> WorkspaceGraph:
    return build_graph(abc_inventory)


@pytest.fixture
def write_json(tmp_path: Path) -> WriteJson:
    """Write a JSON document at a path relative to tmp_path."""

    def _write(relative: str, doc: Any) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(doc, indent=2) + "\n")
        return path

    return _write


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def locator(tmp_path: Path, settings: Settings) -> FileConfigLocator:
    return FileConfigLocator(tmp_path, settings.config_filename)


@pytest.fixture
def abc_workspace(
    tmp_path: Path, write_json: WriteJson, abc_inventory: dict[str, dict[str, Any]]
) -> Path:
    """An on-disk repo where A, B, C and the root have compile configs."""
    for entry in abc_inventory.values():
        write_json(
            f"{entry['location']}/compile.tsconfig.json",
            {"extends": "../../configs/base.tsconfig", "compilerOptions": {}},
        )
    write_json("compile.tsconfig.json", {"files": []})
    write_json("tsconfig.json", {"compilerOptions": {"baseUrl": "."}})
    return tmp_path

"""Tests for workspace_refs.pipeline."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from workspace_refs.config import Settings
from workspace_refs.errors import CyclicDependencyError, MalformedInventoryError
from workspace_refs.models import ExitStatus
from workspace_refs.pipeline import (
    discover_graph,
    run_foreach,
    run_references,
    workspace_order,
)


class TestDiscoverGraph:
    @patch("workspace_refs.pipeline.load_inventory")
    def test_builds_graph(
        self, mock_load: MagicMock, abc_inventory: dict[str, Any], tmp_path: Path
    ) -> None:
        mock_load.return_value = abc_inventory
        graph = discover_graph(tmp_path, Settings(inventory="uv"))
        mock_load.assert_called_once_with("uv", tmp_path)
        assert list(graph.packages) == ["A", "B", "C"]

    @patch("workspace_refs.pipeline.load_inventory")
    def test_cycle_aborts(self, mock_load: MagicMock, tmp_path: Path) -> None:
        mock_load.return_value = {
            "A": {"location": "a", "dependencies": ["B"]},
            "B": {"location": "b", "dependencies": ["A"]},
        }
        with pytest.raises(CyclicDependencyError):
            discover_graph(tmp_path, Settings())

    @patch("workspace_refs.pipeline.load_inventory")
    def test_malformed_inventory_aborts(
        self, mock_load: MagicMock, tmp_path: Path
    ) -> None:
        mock_load.return_value = {"A": {"dependencies": []}}
        with pytest.raises(MalformedInventoryError):
            discover_graph(tmp_path, Settings())


@patch("workspace_refs.pipeline.step")
@patch("workspace_refs.pipeline.load_inventory")
class TestRunReferences:
    def test_wires_whole_workspace(
        self,
        mock_load: MagicMock,
        mock_step: MagicMock,
        abc_workspace: Path,
        abc_inventory: dict[str, Any],
    ) -> None:
        mock_load.return_value = abc_inventory

        assert run_references(abc_workspace, Settings()) == 0

        b = json.loads((abc_workspace / "packages/b/compile.tsconfig.json").read_text())
        assert b["references"] == [{"path": "../a/compile.tsconfig.json"}]
        root = json.loads((abc_workspace / "compile.tsconfig.json").read_text())
        assert root["references"] == [
            {"path": "packages/a/compile.tsconfig.json"},
            {"path": "packages/b/compile.tsconfig.json"},
            {"path": "packages/c/compile.tsconfig.json"},
        ]
        nav = json.loads((abc_workspace / "tsconfig.json").read_text())
        assert nav["compilerOptions"]["paths"]["C/lib/*"] == ["packages/c/src/*"]

    def test_second_run_changes_nothing(
        self,
        mock_load: MagicMock,
        mock_step: MagicMock,
        abc_workspace: Path,
        abc_inventory: dict[str, Any],
    ) -> None:
        mock_load.return_value = abc_inventory
        run_references(abc_workspace, Settings())
        files = sorted(abc_workspace.rglob("*.json"))
        before = {path: path.read_bytes() for path in files}

        with (
            patch("workspace_refs.references.save_json") as mock_save,
            patch("workspace_refs.navigation.save_json") as mock_nav_save,
        ):
            assert run_references(abc_workspace, Settings()) == 0
        mock_save.assert_not_called()
        mock_nav_save.assert_not_called()
        assert {path: path.read_bytes() for path in files} == before

    def test_corrupt_config_does_not_stop_others(
        self,
        mock_load: MagicMock,
        mock_step: MagicMock,
        abc_workspace: Path,
        abc_inventory: dict[str, Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_load.return_value = abc_inventory
        corrupt = abc_workspace / "packages/b/compile.tsconfig.json"
        corrupt.write_text("{ not json")

        assert run_references(abc_workspace, Settings()) == 1

        assert corrupt.read_text() == "{ not json"
        c = json.loads((abc_workspace / "packages/c/compile.tsconfig.json").read_text())
        assert len(c["references"]) == 2
        assert "B: Cannot parse" in capsys.readouterr().err

    def test_unreadable_config_does_not_stop_others(
        self,
        mock_load: MagicMock,
        mock_step: MagicMock,
        abc_workspace: Path,
        abc_inventory: dict[str, Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_load.return_value = abc_inventory
        unreadable = abc_workspace / "packages/b/compile.tsconfig.json"
        read_text = Path.read_text

        def fake_read_text(path: Path, *args: Any, **kwargs: Any) -> str:
            if path == unreadable:
                raise PermissionError(13, "Permission denied")
            return read_text(path, *args, **kwargs)

        with patch.object(Path, "read_text", fake_read_text):
            assert run_references(abc_workspace, Settings()) == 1

        c = json.loads((abc_workspace / "packages/c/compile.tsconfig.json").read_text())
        assert len(c["references"]) == 2
        assert "B: Cannot parse" in capsys.readouterr().err

    def test_cycle_writes_nothing(
        self,
        mock_load: MagicMock,
        mock_step: MagicMock,
        abc_workspace: Path,
    ) -> None:
        mock_load.return_value = {
            "A": {"location": "packages/a", "dependencies": ["C"]},
            "B": {"location": "packages/b", "dependencies": ["A"]},
            "C": {"location": "packages/c", "dependencies": ["B"]},
        }
        with (
            patch("workspace_refs.references.save_json") as mock_save,
            pytest.raises(CyclicDependencyError),
        ):
            run_references(abc_workspace, Settings())
        mock_save.assert_not_called()


@patch("workspace_refs.pipeline.step")
@patch("workspace_refs.pipeline.load_inventory")
class TestRunForeach:
    @patch("workspace_refs.pipeline.broadcast")
    def test_runs_dependents_first(
        self,
        mock_broadcast: MagicMock,
        mock_load: MagicMock,
        mock_step: MagicMock,
        abc_inventory: dict[str, Any],
        tmp_path: Path,
    ) -> None:
        mock_load.return_value = abc_inventory
        mock_broadcast.return_value = [
            ExitStatus(package=name, args=["true"], returncode=0)
            for name in ("C", "B", "A")
        ]

        code = run_foreach(tmp_path, Settings(), "yarn", ["test"])

        assert code == 0
        order, graph, command, args = mock_broadcast.call_args.args
        assert order == ["C", "B", "A"]
        assert (command, args) == ("yarn", ["test"])
        assert mock_broadcast.call_args.kwargs == {"root": tmp_path}

    @patch("workspace_refs.pipeline.broadcast")
    def test_any_failure_fails_the_run(
        self,
        mock_broadcast: MagicMock,
        mock_load: MagicMock,
        mock_step: MagicMock,
        abc_inventory: dict[str, Any],
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_load.return_value = abc_inventory
        mock_broadcast.return_value = [
            ExitStatus(package="C", args=["t"], returncode=0),
            ExitStatus(package="B", args=["t"], returncode=-9),
            ExitStatus(package="A", args=["t"], error="not found"),
        ]

        assert run_foreach(tmp_path, Settings(), "t", []) == 1

        captured = capsys.readouterr()
        assert "B: killed by signal 9" in captured.out
        assert "A: not found" in captured.out
        assert "2 of 3 packages failed" in captured.err


@patch("workspace_refs.pipeline.step")
@patch("workspace_refs.pipeline.load_inventory")
def test_workspace_order(
    mock_load: MagicMock,
    mock_step: MagicMock,
    abc_inventory: dict[str, Any],
    tmp_path: Path,
) -> None:
    mock_load.return_value = abc_inventory
    assert workspace_order(tmp_path, Settings()) == ["A", "B", "C"]
    assert workspace_order(tmp_path, Settings(), reverse=True) == ["C", "B", "A"]

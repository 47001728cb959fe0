"""Tests for workspace_refs.broadcast."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from workspace_refs.broadcast import aggregate_exit_code, broadcast, substitute
from workspace_refs.errors import ProcessInvocationError
from workspace_refs.models import ExitStatus, WorkspaceGraph


class TestSubstitute:
    def test_replaces_every_occurrence(self) -> None:
        args = ["--scope=__PACKAGE__", "__PACKAGE__/__PACKAGE__", "plain"]
        assert substitute(args, "pkg-a") == ["--scope=pkg-a", "pkg-a/pkg-a", "plain"]

    def test_no_args(self) -> None:
        assert substitute([], "pkg-a") == []


class TestBroadcast:
    def test_echo_scenario(self, abc_graph: WorkspaceGraph) -> None:
        runner = MagicMock(side_effect=[1, 0])

        statuses = broadcast(
            ["A", "B"],
            abc_graph,
            "echo",
            ["__PACKAGE__"],
            root=Path("/repo"),
            runner=runner,
        )

        assert runner.call_count == 2
        assert runner.call_args_list[0].args == (
            ["echo", "A"],
            Path("/repo/packages/a"),
        )
        assert runner.call_args_list[1].args == (
            ["echo", "B"],
            Path("/repo/packages/b"),
        )
        assert [s.returncode for s in statuses] == [1, 0]

    def test_continues_after_failures(self, abc_graph: WorkspaceGraph) -> None:
        runner = MagicMock(return_value=2)

        statuses = broadcast(["C", "B", "A"], abc_graph, "false", runner=runner)

        assert runner.call_count == 3
        assert [s.package for s in statuses] == ["C", "B", "A"]
        assert aggregate_exit_code(statuses) == 1

    def test_command_itself_is_not_substituted(
        self, abc_graph: WorkspaceGraph
    ) -> None:
        runner = MagicMock(return_value=0)
        broadcast(["A"], abc_graph, "__PACKAGE__", ["x"], runner=runner)
        assert runner.call_args.args[0] == ["__PACKAGE__", "x"]

    def test_invocation_error_is_recorded(self, abc_graph: WorkspaceGraph) -> None:
        runner = MagicMock(
            side_effect=[ProcessInvocationError("nope", "No such file"), 0]
        )

        statuses = broadcast(["A", "B"], abc_graph, "nope", runner=runner)

        assert runner.call_count == 2
        assert statuses[0].returncode is None
        assert "No such file" in (statuses[0].error or "")
        assert statuses[1].ok

    def test_unknown_package_is_reported(self, abc_graph: WorkspaceGraph) -> None:
        runner = MagicMock(return_value=0)

        statuses = broadcast(["Z", "A"], abc_graph, "true", runner=runner)

        runner.assert_called_once()
        assert statuses[0].error == "Z is not a workspace package"
        assert statuses[1].ok

    def test_prints_progress_line(
        self, abc_graph: WorkspaceGraph, capsys: pytest.CaptureFixture[str]
    ) -> None:
        broadcast(
            ["B"],
            abc_graph,
            "yarn",
            ["test", "--scope", "__PACKAGE__"],
            runner=MagicMock(return_value=0),
        )
        assert "B: $ yarn test --scope B" in capsys.readouterr().out


class TestAggregateExitCode:
    def test_all_ok(self) -> None:
        statuses = [
            ExitStatus(package="a", args=["true"], returncode=0),
            ExitStatus(package="b", args=["true"], returncode=0),
        ]
        assert aggregate_exit_code(statuses) == 0

    def test_empty(self) -> None:
        assert aggregate_exit_code([]) == 0

    def test_not_started_counts_as_failure(self) -> None:
        statuses = [ExitStatus(package="a", args=["nope"], error="missing")]
        assert aggregate_exit_code(statuses) == 1

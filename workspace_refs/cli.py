"""CLI entry point for workspace-refs."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import click

from workspace_refs.config import FORCE_REWRITE_ENV, Settings, load_settings
from workspace_refs.errors import WorkspaceRefsError
from workspace_refs.pipeline import run_foreach, run_references, workspace_order

T = TypeVar("T")


def _guard(fn: Callable[[], T]) -> T:
    """Turn workspace-refs errors into a clean CLI failure (exit code 1)."""
    try:
        return fn()
    except WorkspaceRefsError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(package_name="workspace-refs")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Repository root.",
)
@click.option(
    "--inventory",
    type=click.Choice(["yarn", "uv"]),
    default=None,
    help="Workspace inventory provider. [default: from pyproject.toml, else yarn]",
)
@click.pass_context
def cli(ctx: click.Context, root: Path, inventory: str | None) -> None:
    """Monorepo project references and reverse topological command runner."""
    root = root.resolve()
    settings = _guard(lambda: load_settings(root))
    if inventory:
        settings = settings.model_copy(update={"inventory": inventory})
    ctx.obj = (root, settings)


@cli.command()
@click.option(
    "--force-rewrite/--no-force-rewrite",
    default=None,
    envvar=FORCE_REWRITE_ENV,
    help=(
        "Rewrite every config from scratch. "
        f"[env: {FORCE_REWRITE_ENV}] [default: from pyproject.toml, else off]"
    ),
)
@click.pass_obj
def references(obj: tuple[Path, Settings], force_rewrite: bool | None) -> None:
    """Wire compile config references between workspace packages."""
    root, settings = obj
    if force_rewrite is not None:
        settings = settings.model_copy(update={"force_rewrite": force_rewrite})
    code = _guard(lambda: run_references(root, settings))
    if code:
        raise SystemExit(code)


@cli.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False}
)
@click.argument("command")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def foreach(obj: tuple[Path, Settings], command: str, args: tuple[str, ...]) -> None:
    """Run COMMAND in every package, dependents before their dependencies.

    Every __PACKAGE__ in ARGS is replaced by the current package name.
    """
    root, settings = obj
    code = _guard(lambda: run_foreach(root, settings, command, args))
    if code:
        raise SystemExit(code)


@cli.command()
@click.option("--reverse", is_flag=True, help="Dependents before their dependencies.")
@click.pass_obj
def order(obj: tuple[Path, Settings], reverse: bool) -> None:
    """Print the packages in build order, one per line."""
    root, settings = obj
    for name in _guard(lambda: workspace_order(root, settings, reverse=reverse)):
        click.echo(name)

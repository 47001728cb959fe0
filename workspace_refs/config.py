"""Project settings.

Settings live in the [tool.workspace-refs] table of the repository's root
pyproject.toml, e.g.:

    [tool.workspace-refs]
    inventory = "uv"
    config-filename = "compile.tsconfig.json"

Every key is optional. Command line options override file values.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import SettingsError
from .toml import get_tool_table, load_pyproject

# Reserved token replaced by the package name in broadcast commands.
PACKAGE_PLACEHOLDER = "__PACKAGE__"

# Environment variable enabling a full rewrite of every compile config.
FORCE_REWRITE_ENV = "WORKSPACE_REFS_FORCE_REWRITE"


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class Settings(BaseModel):
    """Resolved settings for one run.

    Attributes:
        inventory: Workspace inventory provider, "yarn" or "uv".
        config_filename: Per-package compile config the reconciler edits.
        navigation_filename: Root document holding the import path mapping.
        source_dir: Package sub-directory holding sources.
        output_dir: Package sub-directory holding compiled output.
        force_rewrite: Rewrite every compile config from scratch.
    """

    model_config = ConfigDict(
        extra="forbid", alias_generator=_kebab, populate_by_name=True
    )

    inventory: Literal["yarn", "uv"] = "yarn"
    config_filename: str = "compile.tsconfig.json"
    navigation_filename: str = "tsconfig.json"
    source_dir: str = "src"
    output_dir: str = "lib"
    force_rewrite: bool = False


def load_settings(root: Path) -> Settings:
    """Read settings from `root`/pyproject.toml, falling back to defaults.

    Raises:
        SettingsError: If pyproject.toml is not valid TOML or the table has
            unknown keys or invalid values.
    """
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return Settings()
    table = get_tool_table(load_pyproject(pyproject, SettingsError))
    try:
        return Settings.model_validate(table)
    except ValidationError as exc:
        raise SettingsError(
            f"Invalid [tool.workspace-refs] in {pyproject}:\n{exc}"
        ) from exc

"""Compile config reference wiring.

Incremental build mode relies on each package's compile config listing the
configs of the workspace packages it depends on. The package manager knows
the dependency graph but the compiler cannot infer it, so these references
are derived from the graph and written into every compile config.

Rewrites are minimal: a config is only written when a derived reference is
missing or build mode is not enabled, and existing entries are never removed
or reordered unless a full rewrite is forced.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .config import Settings
from .errors import PersistedStateCorruptError
from .jsonfile import load_json, save_json
from .models import (
    Package,
    PersistedConfig,
    ProjectReference,
    WorkspaceGraph,
    WriteDecision,
)

# Compile configs with this name can be referenced by their directory alone.
DEFAULT_CONFIG_NAME = "tsconfig.json"


class ConfigLocator(Protocol):
    """Answers whether a package has a compile config, and where."""

    root: Path

    def find(self, package: Package) -> Path | None: ...


class FileConfigLocator:
    """Looks for a compile config file in each package directory."""

    def __init__(self, root: Path, filename: str) -> None:
        self.root = root
        self.filename = filename

    def find(self, package: Package) -> Path | None:
        path = self.root / package.location / self.filename
        return path if path.is_file() else None


def relative_location(source: str, target: str) -> str:
    """Return the posix path leading from location `source` to `target`.

    Both locations are relative to the repository root.

    Examples:
        relative_location("packages/b", "packages/a") → "../a"
        relative_location(".", "packages/a/src/*") → "packages/a/src/*"
    """
    return posixpath.relpath(posixpath.normpath(target), posixpath.normpath(source))


def reference_path(relative: str, config_filename: str) -> str:
    """Return the reference entry for the config in directory `relative`.

    Examples:
        reference_path("../a", "compile.tsconfig.json") → "../a/compile.tsconfig.json"
        reference_path("../a", "tsconfig.json") → "../a"
    """
    if config_filename == DEFAULT_CONFIG_NAME:
        return relative
    return posixpath.normpath(posixpath.join(relative, config_filename))


def derive_references(
    package: Package, graph: WorkspaceGraph, locator: ConfigLocator
) -> list[str]:
    """Derive the directories `package` must reference.

    Every dependency that is part of the graph and has a compile config
    contributes the relative path from `package` to that dependency, in
    declaration order. Dependencies outside the graph are ignored.
    """
    references: list[str] = []
    for dep_name in package.dependencies:
        dep = graph.get(dep_name)
        if dep is None or locator.find(dep) is None:
            continue
        relative = relative_location(package.location, dep.location)
        if relative not in references:
            references.append(relative)
    return references


def reconcile(
    config: PersistedConfig,
    references: Iterable[str],
    *,
    force_rewrite: bool = False,
    source_dir: str = "src",
    output_dir: str = "lib",
) -> WriteDecision:
    """Reconcile a compile config against the derived reference entries.

    The config is dirty when:
    1. compilerOptions is missing (created with composite, rootDir, outDir)
    2. compilerOptions does not enable composite (enabled, other keys kept)
    3. a derived reference is missing (appended after the existing ones)

    With force_rewrite the config is always written and its references are
    regenerated from the derived entries alone, dropping stale ones.

    Args:
        config: The persisted config. It is not modified.
        references: Derived reference entries (see reference_path).
        force_rewrite: Write even when clean and resync the references.
        source_dir: rootDir used when compilerOptions has to be created.
        output_dir: outDir used when compilerOptions has to be created.

    Returns:
        The decision, carrying the reconciled copy of the config.
    """
    derived = list(dict.fromkeys(references))
    reasons: list[str] = []

    options = None if config.options is None else dict(config.options)
    if options is None:
        options = {"composite": True, "rootDir": source_dir, "outDir": output_dir}
        reasons.append("added compilerOptions")
    elif not options.get("composite"):
        if "composite" in options:
            options["composite"] = True
        else:
            options = {"composite": True, **options}
        reasons.append("enabled composite")

    existing = set(config.reference_paths())
    added = [path for path in derived if path not in existing]

    new_refs = config.references
    if force_rewrite:
        by_path = {ref.path: ref for ref in config.references or []}
        new_refs = [
            by_path.get(path) or ProjectReference(path=path) for path in derived
        ]
        reasons.append("forced rewrite")
    elif added:
        new_refs = [
            *(config.references or []),
            *(ProjectReference(path=path) for path in added),
        ]
    if added:
        reasons.append(f"added {', '.join(added)}")

    return WriteDecision(
        config=config.model_copy(update={"options": options, "references": new_refs}),
        write=force_rewrite or bool(reasons),
        added=added,
        reasons=reasons,
    )


def read_config(path: Path) -> PersistedConfig:
    """Load a JSON config document.

    Raises:
        PersistedStateCorruptError: If the file is not valid JSON or its
            compilerOptions/references fields have the wrong shape.
    """
    doc = load_json(path)
    try:
        return PersistedConfig.from_document(doc)
    except ValidationError as exc:
        raise PersistedStateCorruptError(path, str(exc)) from exc


def wire_package(
    package: Package,
    graph: WorkspaceGraph,
    locator: ConfigLocator,
    settings: Settings,
) -> WriteDecision | None:
    """Write the references of one package's compile config if needed.

    Returns:
        The decision, or None if the package has no compile config of its own
        (nothing to wire).

    Raises:
        PersistedStateCorruptError: If the existing config cannot be parsed.
    """
    config_path = locator.find(package)
    if config_path is None:
        return None

    config = read_config(config_path)
    references = [
        reference_path(relative, settings.config_filename)
        for relative in derive_references(package, graph, locator)
    ]
    decision = reconcile(
        config,
        references,
        force_rewrite=settings.force_rewrite,
        source_dir=settings.source_dir,
        output_dir=settings.output_dir,
    )

    label = config_path.relative_to(locator.root)
    if decision.write:
        save_json(config_path, decision.config.to_document())
        print(f"  {label}: {'; '.join(decision.reasons)}")
    else:
        print(f"  {label}: up to date")
    return decision

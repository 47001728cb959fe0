"""Import path mapping for editor navigation.

The root navigation config maps each package's public import prefix to its
local sources, so the language server resolves cross-package imports to the
monorepo instead of compiled output. Compilation itself goes through the
per-package compile configs (see references.py).
"""

from __future__ import annotations

import posixpath

from .config import Settings
from .errors import PersistedStateCorruptError
from .jsonfile import save_json
from .models import PersistedConfig, WorkspaceGraph, WriteDecision
from .references import ConfigLocator, read_config, relative_location


def derive_navigation(
    graph: WorkspaceGraph, locator: ConfigLocator, settings: Settings
) -> dict[str, str]:
    """Map each aggregate root package's import prefix to a local directory.

    Packages with a compile config map `<name>/<output_dir>/*` to their
    `<source_dir>/*`. Other packages map `<name>/*` to their own root.
    """
    root = graph.aggregate()
    mapping: dict[str, str] = {}
    for name in root.dependencies:
        dep = graph.packages[name]
        if locator.find(dep) is not None:
            prefix = f"{name}/{settings.output_dir}/*"
            target = posixpath.join(dep.location, settings.source_dir, "*")
        else:
            prefix = f"{name}/*"
            target = posixpath.join(dep.location, "*")
        mapping[prefix] = relative_location(root.location, target)
    return mapping


def reconcile_navigation(
    config: PersistedConfig,
    mapping: dict[str, str],
    *,
    force_rewrite: bool = False,
) -> WriteDecision:
    """Reconcile compilerOptions.paths against the derived mapping.

    An entry is (re)written only when it is missing or its first target
    differs. Unrelated entries are kept in place and new ones are appended.

    Args:
        config: The persisted navigation config. It is not modified.
        mapping: Import prefix → target directory pattern.
        force_rewrite: Write even when nothing changed.
    """
    reasons: list[str] = []

    options = None if config.options is None else dict(config.options)
    if options is None:
        options = {"baseUrl": ".", "paths": {}}
        reasons.append("added compilerOptions")
    elif options.get("paths") is None:
        options = {**options, "paths": {}}
        reasons.append("added paths")

    paths = dict(options["paths"])
    added: list[str] = []
    for prefix, target in mapping.items():
        current = paths.get(prefix)
        if not current or current[0] != target:
            paths[prefix] = [target]
            added.append(prefix)
    options["paths"] = paths

    if added:
        reasons.append(f"mapped {', '.join(added)}")
    if force_rewrite:
        reasons.append("forced rewrite")

    return WriteDecision(
        config=config.model_copy(update={"options": options}),
        write=bool(reasons),
        added=added,
        reasons=reasons,
    )


def wire_navigation(
    graph: WorkspaceGraph, locator: ConfigLocator, settings: Settings
) -> WriteDecision | None:
    """Update the root navigation config if needed.

    Returns:
        The decision, or None when the repository has no navigation config.

    Raises:
        PersistedStateCorruptError: If the config cannot be parsed or its
            compilerOptions.paths is not an object of lists.
    """
    config_path = locator.root / settings.navigation_filename
    if not config_path.is_file():
        print(f"  {settings.navigation_filename}: not found, skipped")
        return None

    config = read_config(config_path)
    paths = (config.options or {}).get("paths")
    if paths is not None and not (
        isinstance(paths, dict) and all(isinstance(v, list) for v in paths.values())
    ):
        raise PersistedStateCorruptError(
            config_path, "compilerOptions.paths must map prefixes to lists"
        )

    decision = reconcile_navigation(
        config,
        derive_navigation(graph, locator, settings),
        force_rewrite=settings.force_rewrite,
    )
    if decision.write:
        save_json(config_path, decision.config.to_document())
        print(f"  {settings.navigation_filename}: {'; '.join(decision.reasons)}")
    else:
        print(f"  {settings.navigation_filename}: up to date")
    return decision

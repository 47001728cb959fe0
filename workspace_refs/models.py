"""Data models for workspace-refs.

These Pydantic models represent the workspace graph, the JSON documents the
reconciler edits, and the outcome of each step.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Name of the synthetic package standing for the whole repository.
AGGREGATE_ROOT = "<root>"


class Package(BaseModel):
    """A single package in the monorepo workspace.

    Attributes:
        name: Unique package name.
        location: Path from the repository root to the package directory.
        dependencies: Declared workspace dependency names, verbatim. Names
                      that are not part of the graph are kept and ignored
                      by consumers.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    dependencies: tuple[str, ...] = ()


class WorkspaceGraph(BaseModel):
    """Packages keyed by name, in inventory order.

    Attributes:
        packages: Map of package name → Package.
        roots: Names of the packages that make up the whole-repo aggregate.
    """

    model_config = ConfigDict(frozen=True)

    packages: dict[str, Package] = Field(default_factory=dict)
    roots: tuple[str, ...] = ()

    def get(self, name: str) -> Package | None:
        return self.packages.get(name)

    def all(self) -> list[Package]:
        """Return every package in inventory order."""
        return list(self.packages.values())

    def dependencies_of(self, name: str) -> tuple[str, ...]:
        """Return the declared dependencies of `name`, dangling ones included.

        Raises:
            KeyError: If `name` is not part of the graph.
        """
        return self.packages[name].dependencies

    def aggregate(self) -> Package:
        """Return a synthetic package at the repo root depending on every root."""
        return Package(name=AGGREGATE_ROOT, location=".", dependencies=self.roots)


class ProjectReference(BaseModel):
    """One entry of a compile config's `references` list.

    Keys other than `path` (e.g. `prepend`) are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    path: str


class PersistedConfig(BaseModel):
    """Typed view of a JSON compile config document.

    Only `compilerOptions` and `references` are interpreted. Every other
    top-level key lives in `extra`, and `key_order` remembers where each
    key sat so the document is written back in its original shape.
    """

    options: dict[str, Any] | None = None
    references: list[ProjectReference] | None = None
    extra: dict[str, Any] = Field(default_factory=dict)
    key_order: list[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> PersistedConfig:
        """Build a config from a parsed JSON object.

        Raises:
            pydantic.ValidationError: If `compilerOptions` is not an object or
                `references` is not a list of objects with a `path`.
        """
        extra = {
            key: value
            for key, value in doc.items()
            if key not in ("compilerOptions", "references")
        }
        return cls(
            options=doc.get("compilerOptions"),
            references=doc.get("references"),
            extra=extra,
            key_order=list(doc),
        )

    def to_document(self) -> dict[str, Any]:
        """Rebuild the JSON object, keeping the original key order.

        Keys that did not exist before are appended at the end. A `references`
        key that held null is written as an empty list.
        """
        doc: dict[str, Any] = {}
        for key in self.key_order:
            if key == "compilerOptions":
                if self.options is not None:
                    doc[key] = self.options
            elif key == "references":
                doc[key] = self._dump_references()
            elif key in self.extra:
                doc[key] = self.extra[key]
        for key, value in self.extra.items():
            doc.setdefault(key, value)
        if self.options is not None:
            doc.setdefault("compilerOptions", self.options)
        if self.references is not None and "references" not in doc:
            doc["references"] = self._dump_references()
        return doc

    def reference_paths(self) -> list[str]:
        """Return the `path` of every reference, in document order."""
        return [ref.path for ref in self.references or []]

    def _dump_references(self) -> list[dict[str, Any]]:
        return [ref.model_dump() for ref in self.references or []]


class WriteDecision(BaseModel):
    """Outcome of reconciling one document.

    Attributes:
        config: The reconciled document (equal to the input when unchanged).
        write: Whether the document must be written back.
        added: Entries added by this reconciliation (reference paths or
               navigation prefixes).
        reasons: Human readable reasons for the write, empty when clean.
    """

    config: PersistedConfig
    write: bool = False
    added: list[str] = Field(default_factory=list)
    reasons: list[str] = Field(default_factory=list)


class ExitStatus(BaseModel):
    """Result of running the broadcast command for one package.

    Attributes:
        package: Package the command ran for.
        args: The resolved command line.
        returncode: Process exit code; negative when killed by a signal and
                    None when the process could not be started.
        error: Why the process could not be started, if it was not.
    """

    package: str
    args: list[str]
    returncode: int | None = None
    error: str | None = None

    @property
    def signal(self) -> int | None:
        if self.returncode is not None and self.returncode < 0:
            return -self.returncode
        return None

    @property
    def ok(self) -> bool:
        return self.returncode == 0

"""JSON reading and writing utilities.

Compile configs are written with 2-space indentation and a trailing newline
so they stay readable and diff-friendly. Key order is never changed.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .errors import PersistedStateCorruptError


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON document whose top level is an object.

    Raises:
        PersistedStateCorruptError: If the file cannot be read, is not valid
            JSON or its top level is not an object. The file is left untouched.
    """
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PersistedStateCorruptError(path, str(exc)) from exc
    if not isinstance(doc, dict):
        raise PersistedStateCorruptError(
            path, f"expected an object, got {type(doc).__name__}"
        )
    return doc


def dumps_json(doc: Any) -> str:
    """Serialize a document the way it is stored on disk."""
    return json.dumps(doc, indent=2, ensure_ascii=False) + "\n"


def save_json(path: Path, doc: Any) -> None:
    """Overwrite `path` with the serialized document."""
    path.write_text(dumps_json(doc), encoding="utf-8")

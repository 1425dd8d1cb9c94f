"""Bundled JSON schemas.

``seo_structure`` checks the reviewer's JSON reply in the quality pipeline and
``structured_metadata`` checks the schema.org document generated for a run.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

SCHEMAS_DIR = Path(__file__).parent

_NAME = re.compile(r"[a-z0-9][a-z0-9_-]*")


def load_schema(name: str) -> dict[str, Any]:
    """Read ``<name>.json`` from this package.

    Only lowercase names made of letters, digits, ``-`` and ``_`` are
    accepted, so a name can never point outside the package.

    Raises:
        ValueError: for a disallowed name or a file that is not a JSON object.
        FileNotFoundError: when no schema of that name ships with the package.
    """
    if not _NAME.fullmatch(name):
        raise ValueError(f"Invalid schema name {name!r}")
    path = SCHEMAS_DIR / f"{name}.json"
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"No bundled schema named {name!r}") from None
    schema = json.loads(text)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema {name!r} is not a JSON object")
    return schema


def list_schemas() -> list[str]:
    return sorted(path.stem for path in SCHEMAS_DIR.glob("*.json"))


__all__ = ["SCHEMAS_DIR", "list_schemas", "load_schema"]

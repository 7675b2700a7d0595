"""Deterministic JSON encoding and durable file writes."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


def sort_keys_deep(value: Any) -> Any:
    """Return a copy of ``value`` with every mapping's keys sorted."""
    if isinstance(value, dict):
        return {key: sort_keys_deep(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [sort_keys_deep(item) for item in value]
    return value


def canonical_json(payload: Any) -> str:
    """Encode with sorted keys, fixed indentation and a trailing newline.

    Identical input always produces byte-identical output. NaN and infinity
    are rejected rather than written as non-standard tokens.
    """
    return json.dumps(sort_keys_deep(payload), indent=2, sort_keys=True, allow_nan=False) + "\n"


def load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def write_durable(path: Path, text: str) -> None:
    """Write ``text`` and fsync it before returning."""
    with path.open("w", encoding="utf-8") as handle:
        handle.write(text)
        handle.flush()
        os.fsync(handle.fileno())


def write_exclusive(path: Path, text: str) -> None:
    """Create ``path`` (must not exist) and fsync its contents."""
    with path.open("x", encoding="utf-8") as handle:
        handle.write(text)
        handle.flush()
        os.fsync(handle.fileno())


def fsync_directory(path: Path) -> None:
    """Flush directory entries so renames survive a crash (POSIX only)."""
    if os.name != "posix":
        return
    fd = os.open(str(path), os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)

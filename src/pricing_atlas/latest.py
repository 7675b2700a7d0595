"""The ``latest`` pointer: the only entry point for downstream consumers.

The pointer is a small JSON record (``latest.json``) naming the current
version directory. It is replaced with a single atomic rename, so readers see
either the previous version or the new one, never a partial state, on any
filesystem.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from pricing_atlas.config import LATEST_POINTER_FILENAME, SERVICES_DIRNAME
from pricing_atlas.contracts import NormalizedServicePricing
from pricing_atlas.errors import SchemaViolation
from pricing_atlas.serialization import canonical_json, fsync_directory, load_json


def pointer_path(output_dir: Path) -> Path:
    return output_dir / LATEST_POINTER_FILENAME


def read_latest_version(output_dir: Path) -> Optional[str]:
    """Return the version named by the pointer, or None before the first release."""
    path = pointer_path(output_dir)
    if not path.exists():
        return None
    payload = load_json(path)
    version = payload.get("version") if isinstance(payload, dict) else None
    if not isinstance(version, str) or not version:
        raise SchemaViolation(
            "latest pointer is malformed",
            path=str(path),
            expected='{"version": "vX.Y.Z"}',
            actual=payload,
        )
    return version


def resolve_latest(output_dir: Path) -> Optional[Path]:
    """Return the version directory the pointer resolves to."""
    version = read_latest_version(output_dir)
    if version is None:
        return None
    target = output_dir / version
    if not target.is_dir():
        raise SchemaViolation(
            "latest pointer resolves to a missing version directory",
            path=str(pointer_path(output_dir)),
            expected=str(target),
            actual="missing",
        )
    return target


def load_latest_document(output_dir: Path, service: str) -> Optional[dict[str, Any]]:
    """Raw JSON document for ``service`` from the latest version, if published."""
    version_dir = resolve_latest(output_dir)
    if version_dir is None:
        return None
    path = version_dir / SERVICES_DIRNAME / f"{service}.json"
    if not path.exists():
        return None
    return load_json(path)


def latest_service_names(output_dir: Path) -> list[str]:
    """Slugs of every service file published in the latest version."""
    version_dir = resolve_latest(output_dir)
    if version_dir is None:
        return []
    return sorted(path.stem for path in (version_dir / SERVICES_DIRNAME).glob("*.json"))


def load_latest_snapshot(output_dir: Path, service: str) -> Optional[NormalizedServicePricing]:
    document = load_latest_document(output_dir, service)
    if document is None:
        return None
    return NormalizedServicePricing.model_validate(document)


def write_latest_pointer(output_dir: Path, version: str) -> Path:
    """Atomically repoint ``latest.json`` at ``version``."""
    target = pointer_path(output_dir)
    fd, tmp_name = tempfile.mkstemp(prefix=".latest-", suffix=".tmp", dir=str(output_dir))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(canonical_json({"version": version}))
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    fsync_directory(output_dir)
    return target

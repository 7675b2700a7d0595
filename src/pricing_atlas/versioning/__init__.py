"""Snapshot diffing, semantic version bumps and version publication."""

from __future__ import annotations

from pricing_atlas.versioning.differ import (
    classify_bump,
    diff_documents,
    diff_removed_service,
    diff_service,
)
from pricing_atlas.versioning.semver import (
    aggregate_bump,
    bump_version,
    compute_version_info,
    format_version,
    parse_version,
)
from pricing_atlas.versioning.versioner import VersionResult, Versioner

__all__ = [
    "VersionResult",
    "Versioner",
    "aggregate_bump",
    "bump_version",
    "classify_bump",
    "compute_version_info",
    "diff_documents",
    "diff_removed_service",
    "diff_service",
    "format_version",
    "parse_version",
]

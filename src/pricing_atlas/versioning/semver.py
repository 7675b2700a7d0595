"""Version string arithmetic and bump aggregation."""

from __future__ import annotations

import re
from typing import Optional, Sequence

from pricing_atlas.config import INITIAL_VERSION, PLACEHOLDER_VERSION
from pricing_atlas.contracts import BumpCause, BumpType, DiffResult, VersionInfo

_VERSION_RE = re.compile(r"^v(\d+)(?:\.(\d+))?(?:\.(\d+))?$")


def parse_version(version: str) -> tuple[int, int, int]:
    match = _VERSION_RE.match(str(version or "").strip())
    if not match:
        raise ValueError(f"invalid version: {version!r}")
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return major, minor, patch


def format_version(major: int, minor: int, patch: int) -> str:
    return f"v{major}.{minor}.{patch}"


def bump_version(version: str, bump: BumpType) -> str:
    major, minor, patch = parse_version(version)
    if bump is BumpType.MAJOR:
        return format_version(major + 1, 0, 0)
    if bump is BumpType.MINOR:
        return format_version(major, minor + 1, 0)
    return format_version(major, minor, patch + 1)


def compute_version_info(current: Optional[str], bump: BumpType) -> VersionInfo:
    """Next version after ``current``; the first release is always v1.0.0."""
    if current is None:
        next_version = INITIAL_VERSION
        current = PLACEHOLDER_VERSION
    else:
        next_version = bump_version(current, bump)
    major, minor, patch = parse_version(next_version)
    return VersionInfo(current=current, next=next_version, major=major, minor=minor, patch=patch)


def aggregate_bump(diffs: Sequence[DiffResult]) -> BumpCause:
    """Maximum severity across services.

    Ties go to the earliest service that actually changed, then to the
    earliest service.
    """
    if not diffs:
        return BumpCause(service=None, bumpType=BumpType.MINOR, reason="no services diffed")
    winner = diffs[0]
    for diff in diffs[1:]:
        if diff.bump_type.priority > winner.bump_type.priority:
            winner = diff
        elif diff.bump_type is winner.bump_type and diff.changes and not winner.changes:
            winner = diff
    return BumpCause(service=winner.service, bumpType=winner.bump_type, reason=winner.reason)

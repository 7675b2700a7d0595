"""Immutable version directories and the latest-pointer commit.

A version directory is created exclusively, filled, fsynced, and only then
made visible by repointing ``latest.json``. A crash at any earlier point
leaves the previous latest untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Mapping, Optional

from pricing_atlas.config import DIFF_REPORT_FILENAME, METADATA_FILENAME, SERVICES_DIRNAME
from pricing_atlas.contracts import (
    BumpCause,
    DiffResult,
    NormalizedServicePricing,
    ServiceState,
    VersionInfo,
    VersionMetadata,
)
from pricing_atlas.errors import VersionDirectoryCollision
from pricing_atlas.latest import (
    latest_service_names,
    load_latest_document,
    read_latest_version,
    write_latest_pointer,
)
from pricing_atlas.logging_config import get_logger
from pricing_atlas.serialization import canonical_json, fsync_directory, write_exclusive
from pricing_atlas.state import ServiceStateTracker
from pricing_atlas.versioning.differ import diff_removed_service, diff_service
from pricing_atlas.versioning.report import render_diff_report
from pricing_atlas.versioning.semver import aggregate_bump, compute_version_info

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class VersionResult:
    info: VersionInfo
    version_dir: Path
    metadata: VersionMetadata
    diffs: tuple[DiffResult, ...]

    @property
    def version(self) -> str:
        return self.info.next


class Versioner:
    """Diffs validated snapshots against latest and publishes a new version."""

    def __init__(
        self,
        output_dir: Path,
        tracker: ServiceStateTracker,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.output_dir = output_dir
        self.tracker = tracker
        self.clock = clock or utc_now

    def diff_against_latest(
        self, snapshots: Mapping[str, NormalizedServicePricing]
    ) -> list[DiffResult]:
        """One DiffResult per service, in service-code order.

        Services published in latest but missing from ``snapshots`` follow as
        removals, ordered by slug.
        """
        diffs = []
        for code in sorted(snapshots):
            snapshot = snapshots[code]
            previous = load_latest_document(self.output_dir, snapshot.service)
            diff = diff_service(snapshot.service, previous, snapshot.to_document())
            logger.info(
                "diff.service",
                service=snapshot.service,
                bump=diff.bump_type.value,
                changes=len(diff.changes),
                new=diff.is_new_service,
            )
            diffs.append(diff)

        current = {snapshot.service for snapshot in snapshots.values()}
        for service in latest_service_names(self.output_dir):
            if service in current:
                continue
            previous = load_latest_document(self.output_dir, service)
            diff = diff_removed_service(service, previous or {})
            logger.warning("diff.service_removed", service=service, bump=diff.bump_type.value)
            diffs.append(diff)
        return diffs

    def _create_version_dir(self, version: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        version_dir = self.output_dir / version
        try:
            version_dir.mkdir()
        except FileExistsError as exc:
            raise VersionDirectoryCollision(
                f"version directory {version} already exists",
                path=str(version_dir),
                expected="non-existent directory",
                actual="exists",
            ) from exc
        (version_dir / SERVICES_DIRNAME).mkdir()
        return version_dir

    def publish(
        self,
        snapshots: Mapping[str, NormalizedServicePricing],
        diffs: list[DiffResult],
        *,
        enabled_codes: Iterable[str],
    ) -> VersionResult:
        """Write every snapshot into a new version and commit the pointer."""
        codes = sorted(snapshots)
        enabled = sorted(set(enabled_codes))
        self.tracker.require_all_at_least(ServiceState.VALIDATED, enabled)

        cause: BumpCause = aggregate_bump(diffs)
        previous_version = read_latest_version(self.output_dir)
        info = compute_version_info(previous_version, cause.bump_type)
        version_dir = self._create_version_dir(info.next)
        services_dir = version_dir / SERVICES_DIRNAME
        logger.info(
            "version.start",
            version=info.next,
            previous=previous_version,
            bump=cause.bump_type.value,
            cause=cause.service,
        )

        for code in codes:
            versioned = snapshots[code].with_version(info.next)
            path = services_dir / f"{versioned.service}.json"
            write_exclusive(path, canonical_json(versioned.to_document()))
            self.tracker.mark_output(code)
        fsync_directory(services_dir)

        metadata = VersionMetadata(
            version=info.next,
            createdAt=self.clock().astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            previousVersion=previous_version,
            bumpCause=cause,
            services=sorted(snapshots[code].service for code in codes),
        )
        write_exclusive(
            version_dir / METADATA_FILENAME,
            canonical_json(metadata.model_dump(mode="json", by_alias=True)),
        )
        write_exclusive(
            version_dir / DIFF_REPORT_FILENAME,
            render_diff_report(
                version=info.next,
                previous_version=previous_version,
                cause=cause,
                diffs=diffs,
            ),
        )
        fsync_directory(version_dir)

        for code in codes:
            self.tracker.mark_versioned(code)
        self.tracker.require_all_versioned(enabled)

        write_latest_pointer(self.output_dir, info.next)
        logger.info("version.committed", version=info.next, services=len(codes))
        return VersionResult(
            info=info,
            version_dir=version_dir,
            metadata=metadata,
            diffs=tuple(diffs),
        )

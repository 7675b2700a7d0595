"""Download manifest: the parity baseline for a run."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from pydantic import ValidationError

from pricing_atlas.config import MANIFEST_FILENAME
from pricing_atlas.contracts import DownloadManifest
from pricing_atlas.errors import FetchFailure
from pricing_atlas.logging_config import get_logger
from pricing_atlas.serialization import canonical_json, load_json, write_durable

if TYPE_CHECKING:
    from pricing_atlas.fetch.fetcher import FetchResult

logger = get_logger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def generate_manifest(
    results: Sequence["FetchResult"], *, timestamp: Optional[str] = None
) -> DownloadManifest:
    return DownloadManifest(
        downloaded=[result.service for result in results if result.success],
        failed=[result.service for result in results if not result.success],
        errors={
            result.service: result.error or "unknown error"
            for result in results
            if not result.success
        },
        timestamp=timestamp or utc_now_iso(),
    )


def manifest_path(raw_dir: Path) -> Path:
    return raw_dir / MANIFEST_FILENAME


def write_manifest(manifest: DownloadManifest, raw_dir: Path) -> Path:
    raw_dir.mkdir(parents=True, exist_ok=True)
    path = manifest_path(raw_dir)
    write_durable(path, canonical_json(manifest.model_dump(mode="json")))
    logger.info(
        "manifest.written",
        path=str(path),
        downloaded=len(manifest.downloaded),
        failed=len(manifest.failed),
    )
    return path


def read_manifest(raw_dir: Path) -> DownloadManifest:
    path = manifest_path(raw_dir)
    if not path.exists():
        raise FetchFailure(
            "no download manifest found",
            path=str(path),
            expected="manifest from a previous fetch",
            actual="missing",
            hint="Run without --skip-fetch to download the catalogs first.",
        )
    try:
        return DownloadManifest.model_validate(load_json(path))
    except (ValueError, ValidationError) as exc:
        raise FetchFailure(f"download manifest is unreadable: {exc}", path=str(path)) from exc


def validate_manifest(manifest: DownloadManifest, raw_dir: Path) -> None:
    """Raise unless every service downloaded to a non-empty file."""
    if manifest.failed:
        raise FetchFailure(
            f"{len(manifest.failed)} service(s) failed to download; run aborted",
            path=str(manifest_path(raw_dir)),
            expected="failed: []",
            actual=manifest.failed,
            details=[f"{code}: {manifest.errors.get(code, 'unknown error')}" for code in manifest.failed],
        )
    for code in manifest.downloaded:
        path = raw_dir / f"{code}.json"
        if not path.exists() or path.stat().st_size == 0:
            raise FetchFailure(
                "downloaded catalog is missing or empty",
                service=code,
                path=str(path),
                expected="non-empty file",
                actual="missing" if not path.exists() else "0 bytes",
            )

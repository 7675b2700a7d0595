"""Streamed download of raw offer files.

Each catalog is copied from the HTTP response to disk in fixed-size chunks,
so memory use does not depend on catalog size. There are no retries: a
failed or empty download fails the whole run.
"""

from __future__ import annotations

import os
import shutil
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from pricing_atlas.config import FETCH_BATCH_SIZE, FETCH_CHUNK_BYTES, FETCH_TIMEOUT_SECONDS
from pricing_atlas.contracts import DownloadManifest
from pricing_atlas.fetch.manifest import generate_manifest, validate_manifest, write_manifest
from pricing_atlas.logging_config import get_logger
from pricing_atlas.registry import ServiceDefinition, ServiceRegistry

logger = get_logger(__name__)


@dataclass(frozen=True)
class FetchResult:
    service: str
    success: bool
    path: Path
    size_bytes: int = 0
    error: Optional[str] = None


def raw_catalog_path(raw_dir: Path, service_code: str) -> Path:
    return raw_dir / f"{service_code}.json"


def fetch_catalog(
    definition: ServiceDefinition,
    raw_dir: Path,
    *,
    timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
) -> FetchResult:
    """Download one offer file to ``<raw_dir>/<code>.json``.

    Failures are returned, not raised, so a batch can report every failed
    service at once. The partial file is always removed on failure.
    """
    target = raw_catalog_path(raw_dir, definition.code)
    partial = target.with_name(target.name + ".part")
    started = time.monotonic()
    logger.info("fetch.start", service=definition.code, url=definition.url)

    try:
        raw_dir.mkdir(parents=True, exist_ok=True)
        request = Request(definition.url, headers={"Accept": "application/json"}, method="GET")
        with urlopen(request, timeout=timeout_seconds) as response:
            status = getattr(response, "status", None)
            if status is not None and status != 200:
                raise URLError(f"HTTP {status}")
            with partial.open("wb") as handle:
                shutil.copyfileobj(response, handle, FETCH_CHUNK_BYTES)
        size = partial.stat().st_size
        if size == 0:
            raise URLError("empty response body")
        os.replace(partial, target)
    except HTTPError as exc:
        error = f"HTTP {exc.code}: {exc.reason}"
    except (URLError, OSError, ValueError) as exc:
        error = str(getattr(exc, "reason", None) or exc)
    else:
        logger.info(
            "fetch.complete",
            service=definition.code,
            size_mb=round(size / (1024 * 1024), 2),
            seconds=round(time.monotonic() - started, 2),
        )
        return FetchResult(service=definition.code, success=True, path=target, size_bytes=size)

    for leftover in (partial, target):
        if leftover.exists():
            leftover.unlink()
    logger.error("fetch.failed", service=definition.code, error=error)
    return FetchResult(service=definition.code, success=False, path=target, error=error)


def fetch_batch(
    definitions: list[ServiceDefinition],
    raw_dir: Path,
    *,
    batch_size: int = FETCH_BATCH_SIZE,
    timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
) -> list[FetchResult]:
    """Download in fixed-size batches; each batch runs concurrently."""
    results: list[FetchResult] = []
    for start in range(0, len(definitions), batch_size):
        batch = definitions[start : start + batch_size]
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            results.extend(
                pool.map(
                    lambda definition: fetch_catalog(
                        definition, raw_dir, timeout_seconds=timeout_seconds
                    ),
                    batch,
                )
            )
    return results


def fetch_all(
    registry: ServiceRegistry,
    raw_dir: Path,
    *,
    batch_size: int = FETCH_BATCH_SIZE,
    timeout_seconds: float = FETCH_TIMEOUT_SECONDS,
    timestamp: Optional[str] = None,
) -> DownloadManifest:
    """Fetch every enabled service, write the manifest, fail on any failure."""
    definitions = registry.enabled()
    logger.info("fetch.run", services=len(definitions), batch_size=batch_size)
    results = fetch_batch(
        definitions, raw_dir, batch_size=batch_size, timeout_seconds=timeout_seconds
    )
    manifest = generate_manifest(results, timestamp=timestamp)
    write_manifest(manifest, raw_dir)
    validate_manifest(manifest, raw_dir)
    return manifest

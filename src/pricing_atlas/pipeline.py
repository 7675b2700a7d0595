"""End-to-end pipeline run: fetch, normalize, validate, version, commit."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from pricing_atlas.catalog_stream import decode_catalog
from pricing_atlas.config import PipelineConfig
from pricing_atlas.contracts import DownloadManifest, NormalizedServicePricing, ServiceState
from pricing_atlas.errors import FetchFailure, PricingPipelineError
from pricing_atlas.fetch.fetcher import fetch_all, raw_catalog_path
from pricing_atlas.fetch.manifest import read_manifest, validate_manifest
from pricing_atlas.logging_config import get_logger
from pricing_atlas.registry import ServiceDefinition, ServiceRegistry
from pricing_atlas.state import ServiceStateTracker
from pricing_atlas.validate.parity import check_parity
from pricing_atlas.validate.validator import validate_service_pricing
from pricing_atlas.versioning.versioner import Clock, VersionResult, Versioner

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    manifest: DownloadManifest
    version: VersionResult
    states: dict[str, ServiceState]

    def to_summary(self) -> dict[str, object]:
        return {
            "version": self.version.version,
            "previous_version": self.version.metadata.previous_version,
            "bump": self.version.metadata.bump_cause.bump_type.value,
            "bump_reason": self.version.metadata.bump_cause.reason,
            "services": self.version.metadata.services,
            "version_dir": str(self.version.version_dir),
        }


def process_service(
    definition: ServiceDefinition,
    config: PipelineConfig,
    tracker: ServiceStateTracker,
) -> NormalizedServicePricing:
    """Decode, normalize and validate one downloaded service."""
    processor = definition.processor
    if processor is None:
        raise ValueError(f"{definition.code} has no processor")
    catalog = decode_catalog(
        raw_catalog_path(config.raw_dir, definition.code),
        service_code=definition.code,
        region=config.region,
    )
    snapshot = processor.normalize(catalog)
    tracker.mark_normalized(definition.code)
    validate_service_pricing(snapshot, processor)
    tracker.mark_validated(definition.code)
    logger.info("service.validated", service=definition.code, slug=processor.slug)
    return snapshot


def _load_manifest(registry: ServiceRegistry, config: PipelineConfig, skip_fetch: bool) -> DownloadManifest:
    if not skip_fetch:
        return fetch_all(
            registry,
            config.raw_dir,
            batch_size=config.fetch_batch_size,
            timeout_seconds=config.fetch_timeout_seconds,
        )
    manifest = read_manifest(config.raw_dir)
    validate_manifest(manifest, config.raw_dir)
    missing = sorted(set(registry.enabled_codes()) - set(manifest.downloaded))
    if missing:
        raise FetchFailure(
            "enabled services are absent from the existing download manifest",
            path=str(config.manifest_path),
            expected=registry.enabled_codes(),
            actual=manifest.downloaded,
            details=[f"not downloaded: {code}" for code in missing],
        )
    return manifest


def _process_all(
    definitions: list[ServiceDefinition],
    config: PipelineConfig,
    tracker: ServiceStateTracker,
) -> dict[str, NormalizedServicePricing]:
    snapshots: dict[str, NormalizedServicePricing] = {}
    if not definitions:
        return snapshots
    with ThreadPoolExecutor(max_workers=config.process_workers) as pool:
        futures: dict[str, Future[NormalizedServicePricing]] = {
            definition.code: pool.submit(process_service, definition, config, tracker)
            for definition in definitions
        }
        for code in sorted(futures):
            try:
                snapshots[code] = futures[code].result()
            except PricingPipelineError as exc:
                tracker.mark_failed(code, exc.message)
                for pending in futures.values():
                    pending.cancel()
                raise
    return snapshots


def run_pipeline(
    registry: ServiceRegistry,
    config: PipelineConfig,
    *,
    skip_fetch: bool = False,
    clock: Optional[Clock] = None,
) -> PipelineResult:
    """Run every stage; any PricingPipelineError aborts the whole run."""
    tracker = ServiceStateTracker()
    enabled_codes = registry.enabled_codes()
    logger.info("pipeline.start", region=config.region, services=enabled_codes, skip_fetch=skip_fetch)

    manifest = _load_manifest(registry, config, skip_fetch)
    fetched = [code for code in manifest.downloaded if code in enabled_codes]
    for code in fetched:
        tracker.mark_downloaded(code)

    processable = []
    for definition in registry.enabled():
        if definition.code not in fetched:
            continue
        if definition.processor is None:
            tracker.mark_failed(definition.code, "no processor registered")
            logger.warning("service.unsupported", service=definition.code)
            continue
        processable.append(definition)

    snapshots = _process_all(processable, config, tracker)
    check_parity(fetched, tracker.services_in(ServiceState.VALIDATED))

    versioner = Versioner(config.output_dir, tracker, clock=clock)
    diffs = versioner.diff_against_latest(snapshots)
    version = versioner.publish(snapshots, diffs, enabled_codes=enabled_codes)
    logger.info("pipeline.complete", version=version.version)
    return PipelineResult(manifest=manifest, version=version, states=tracker.snapshot())

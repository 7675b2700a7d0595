"""PricingAtlas: normalized, versioned AWS on-demand pricing snapshots."""

from __future__ import annotations

__version__ = "0.1.0"

from pricing_atlas.config import PipelineConfig
from pricing_atlas.contracts import (
    BumpType,
    CanonicalUnit,
    ChangeType,
    DiffResult,
    DownloadManifest,
    NormalizedServicePricing,
    PricingTier,
    ServiceState,
    SimpleRate,
)
from pricing_atlas.errors import PricingPipelineError
from pricing_atlas.latest import load_latest_snapshot, resolve_latest
from pricing_atlas.pipeline import PipelineResult, run_pipeline
from pricing_atlas.registry import ServiceDefinition, ServiceRegistry, build_default_registry

__all__ = [
    "BumpType",
    "CanonicalUnit",
    "ChangeType",
    "DiffResult",
    "DownloadManifest",
    "NormalizedServicePricing",
    "PipelineConfig",
    "PipelineResult",
    "PricingPipelineError",
    "PricingTier",
    "ServiceDefinition",
    "ServiceRegistry",
    "ServiceState",
    "SimpleRate",
    "__version__",
    "build_default_registry",
    "load_latest_snapshot",
    "resolve_latest",
    "run_pipeline",
]

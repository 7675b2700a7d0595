"""Configuration constants for the PricingAtlas pipeline.

This module centralizes the catalog endpoints, download limits, output layout
and environment overrides used across the fetch, normalize and version stages.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# Public price-list endpoint (one offer file per service code)
AWS_PRICING_BASE_URL = "https://pricing.us-east-1.amazonaws.com/offers/v1.0/aws"
AWS_OFFER_PATH = "current/index.json"

# Download limits
FETCH_BATCH_SIZE = 5  # Services downloaded concurrently per batch
FETCH_TIMEOUT_SECONDS = 300.0  # Per-request socket timeout
FETCH_CHUNK_BYTES = 1024 * 1024  # Streamed copy chunk size

# Per-service decode/normalize/validate workers
PROCESS_WORKERS = 4

DEFAULT_REGION = "us-east-1"
DEFAULT_RAW_DIR = Path("raw")
DEFAULT_OUTPUT_DIR = Path("output")

# Output layout
MANIFEST_FILENAME = "download-manifest.json"
LATEST_POINTER_FILENAME = "latest.json"
METADATA_FILENAME = "metadata.json"
DIFF_REPORT_FILENAME = "DIFF_REPORT.md"
SERVICES_DIRNAME = "services"

# Versioning
PLACEHOLDER_VERSION = "v0.0.0"  # Carried by normalized snapshots until assigned
INITIAL_VERSION = "v1.0.0"
CURRENCY = "USD"

_ENV_PREFIX = "PRICING_ATLAS_"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(_ENV_PREFIX + name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{_ENV_PREFIX}{name} must be > 0, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(_ENV_PREFIX + name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be a number, got {raw!r}") from exc
    if not value > 0:
        raise ValueError(f"{_ENV_PREFIX}{name} must be > 0, got {value}")
    return value


@dataclass(frozen=True)
class PipelineConfig:
    """Run-level settings for one pipeline invocation."""

    region: str = DEFAULT_REGION
    raw_dir: Path = DEFAULT_RAW_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    fetch_batch_size: int = FETCH_BATCH_SIZE
    fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    process_workers: int = PROCESS_WORKERS

    def __post_init__(self) -> None:
        if not self.region.strip():
            raise ValueError("region must be non-empty")
        if self.fetch_batch_size <= 0:
            raise ValueError("fetch_batch_size must be > 0")
        if not self.fetch_timeout_seconds > 0:
            raise ValueError("fetch_timeout_seconds must be > 0")
        if self.process_workers <= 0:
            raise ValueError("process_workers must be > 0")

    @property
    def manifest_path(self) -> Path:
        return self.raw_dir / MANIFEST_FILENAME

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from PRICING_ATLAS_* environment variables."""
        return cls(
            region=os.getenv(_ENV_PREFIX + "REGION", "").strip() or DEFAULT_REGION,
            raw_dir=Path(os.getenv(_ENV_PREFIX + "RAW_DIR", "").strip() or DEFAULT_RAW_DIR),
            output_dir=Path(
                os.getenv(_ENV_PREFIX + "OUTPUT_DIR", "").strip() or DEFAULT_OUTPUT_DIR
            ),
            fetch_batch_size=_env_int("FETCH_BATCH_SIZE", FETCH_BATCH_SIZE),
            fetch_timeout_seconds=_env_float("FETCH_TIMEOUT_SECONDS", FETCH_TIMEOUT_SECONDS),
            process_workers=_env_int("PROCESS_WORKERS", PROCESS_WORKERS),
        )


def offer_url(service_code: str) -> str:
    return f"{AWS_PRICING_BASE_URL}/{service_code}/{AWS_OFFER_PATH}"

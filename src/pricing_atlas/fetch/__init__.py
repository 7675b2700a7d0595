"""Raw catalog download and the per-run download manifest."""

from __future__ import annotations

from pricing_atlas.fetch.fetcher import FetchResult, fetch_all, fetch_catalog
from pricing_atlas.fetch.manifest import (
    generate_manifest,
    read_manifest,
    validate_manifest,
    write_manifest,
)

__all__ = [
    "FetchResult",
    "fetch_all",
    "fetch_catalog",
    "generate_manifest",
    "read_manifest",
    "validate_manifest",
    "write_manifest",
]

"""Output validation and the fetched/processed parity gate."""

from __future__ import annotations

from pricing_atlas.validate.parity import check_parity
from pricing_atlas.validate.schema import build_service_schema, validate_against_schema
from pricing_atlas.validate.validator import (
    check_numeric_sanity,
    check_tier_continuity,
    validate_service_pricing,
)

__all__ = [
    "build_service_schema",
    "check_numeric_sanity",
    "check_parity",
    "check_tier_continuity",
    "validate_against_schema",
    "validate_service_pricing",
]

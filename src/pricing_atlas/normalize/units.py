"""Vendor unit strings to canonical units, and strict price parsing."""

from __future__ import annotations

import math
from typing import Optional

from pricing_atlas.contracts import CanonicalUnit
from pricing_atlas.errors import NumericAnomaly, UnmappableUnit

# Exact-match table. No case folding or fuzzy matching: a new vendor spelling
# must be added here explicitly.
UNIT_MAP: dict[str, CanonicalUnit] = {
    "Hrs": CanonicalUnit.HOUR,
    "hrs": CanonicalUnit.HOUR,
    "Hour": CanonicalUnit.HOUR,
    "hour": CanonicalUnit.HOUR,
    "Hours": CanonicalUnit.HOUR,
    "hours": CanonicalUnit.HOUR,
    "Seconds": CanonicalUnit.SECOND,
    "seconds": CanonicalUnit.SECOND,
    "Second": CanonicalUnit.SECOND,
    "Minutes": CanonicalUnit.MINUTE,
    "minutes": CanonicalUnit.MINUTE,
    "GB": CanonicalUnit.GB,
    "gb": CanonicalUnit.GB,
    "GB-Mo": CanonicalUnit.GB_MONTH,
    "GB-Month": CanonicalUnit.GB_MONTH,
    "GBMonth": CanonicalUnit.GB_MONTH,
    "GB-month": CanonicalUnit.GB_MONTH,
    "GB-Second": CanonicalUnit.GB_SECOND,
    "GB-Seconds": CanonicalUnit.GB_SECOND,
    "Lambda-GB-Second": CanonicalUnit.GB_SECOND,
    "vCPU-Hours": CanonicalUnit.VCPU_HOUR,
    "vCPU-hrs": CanonicalUnit.VCPU_HOUR,
    "eCPU-Hours": CanonicalUnit.ECPU_HOUR,
    "eCPU-hrs": CanonicalUnit.ECPU_HOUR,
    "Requests": CanonicalUnit.REQUEST,
    "requests": CanonicalUnit.REQUEST,
    "Request": CanonicalUnit.REQUEST,
    "1M Requests": CanonicalUnit.MILLION_REQUESTS,
    "1M requests": CanonicalUnit.MILLION_REQUESTS,
    "Million Requests": CanonicalUnit.MILLION_REQUESTS,
    "Transitions": CanonicalUnit.TRANSITION,
    "transitions": CanonicalUnit.TRANSITION,
    "Flat": CanonicalUnit.FLAT,
    "flat": CanonicalUnit.FLAT,
    "Each": CanonicalUnit.FLAT,
    "each": CanonicalUnit.FLAT,
}


def map_unit(
    vendor_unit: object,
    *,
    service: Optional[str] = None,
    path: Optional[str] = None,
) -> CanonicalUnit:
    """Translate a vendor unit string; unknown strings are fatal."""
    if isinstance(vendor_unit, str) and vendor_unit in UNIT_MAP:
        return UNIT_MAP[vendor_unit]
    raise UnmappableUnit(
        f"unknown vendor unit {vendor_unit!r}",
        service=service,
        path=path,
        expected="one of: " + ", ".join(sorted(UNIT_MAP)),
        actual=vendor_unit,
    )


def parse_price(
    raw: object,
    *,
    service: Optional[str] = None,
    path: Optional[str] = None,
) -> float:
    """Parse a vendor price string (e.g. ``"0.0104000000"``) into a float.

    Rejects empty, non-numeric, non-finite and negative values.
    """
    if isinstance(raw, bool) or raw is None:
        value = math.nan
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            value = math.nan
    if not math.isfinite(value) or value < 0:
        raise NumericAnomaly(
            "price is not a finite non-negative number",
            service=service,
            path=path,
            expected="finite number >= 0",
            actual=raw,
        )
    return value

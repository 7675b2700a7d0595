"""Region display names to region codes."""

from __future__ import annotations

import re
from typing import Optional

from pricing_atlas.errors import UnmappableRegion

REGION_CODE_PATTERN = re.compile(r"^[a-z]{2}(-gov)?-[a-z]+-\d+$")

# Display names as they appear in the `location` / `fromLocation` attributes.
# Older catalogs use "EU (...)", newer ones "Europe (...)".
REGION_CODES: dict[str, str] = {
    "US East (N. Virginia)": "us-east-1",
    "US East (Ohio)": "us-east-2",
    "US West (N. California)": "us-west-1",
    "US West (Oregon)": "us-west-2",
    "AWS GovCloud (US-East)": "us-gov-east-1",
    "AWS GovCloud (US-West)": "us-gov-west-1",
    "EU (Ireland)": "eu-west-1",
    "EU (London)": "eu-west-2",
    "EU (Paris)": "eu-west-3",
    "EU (Frankfurt)": "eu-central-1",
    "EU (Stockholm)": "eu-north-1",
    "EU (Milan)": "eu-south-1",
    "Europe (Ireland)": "eu-west-1",
    "Europe (London)": "eu-west-2",
    "Europe (Paris)": "eu-west-3",
    "Europe (Frankfurt)": "eu-central-1",
    "Europe (Stockholm)": "eu-north-1",
    "Europe (Milan)": "eu-south-1",
    "Asia Pacific (Tokyo)": "ap-northeast-1",
    "Asia Pacific (Seoul)": "ap-northeast-2",
    "Asia Pacific (Osaka)": "ap-northeast-3",
    "Asia Pacific (Singapore)": "ap-southeast-1",
    "Asia Pacific (Sydney)": "ap-southeast-2",
    "Asia Pacific (Mumbai)": "ap-south-1",
    "Asia Pacific (Hong Kong)": "ap-east-1",
    "Canada (Central)": "ca-central-1",
    "Canada West (Calgary)": "ca-west-1",
    "South America (Sao Paulo)": "sa-east-1",
    "South America (São Paulo)": "sa-east-1",
    "Middle East (Bahrain)": "me-south-1",
    "Africa (Cape Town)": "af-south-1",
}

# Location values that are not regions (global or edge pricing).
NON_REGIONAL_LOCATIONS = frozenset({"Any", "External", "AWS Outposts"})


def normalize_region(value: str, *, service: Optional[str] = None, path: Optional[str] = None) -> str:
    """Return the region code for a display name or an existing code."""
    raw = str(value or "").strip()
    if REGION_CODE_PATTERN.match(raw):
        return raw
    code = REGION_CODES.get(raw)
    if code is None:
        raise UnmappableRegion(
            f"unknown region {raw!r}",
            service=service,
            path=path,
            expected="a region code or a display name in REGION_CODES",
            actual=raw,
        )
    return code


def assert_single_region(region: str, expected: str, *, service: Optional[str] = None) -> None:
    if region != expected:
        raise UnmappableRegion(
            "normalized output is for the wrong region",
            service=service,
            path="region",
            expected=expected,
            actual=region,
        )

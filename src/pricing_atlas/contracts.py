"""Data contracts for the PricingAtlas pipeline.

This module defines the Pydantic models that cross stage boundaries: the
normalized per-service snapshot, diff and version records, and the download
manifest. Snapshots are immutable once built; the Versioner only ever derives
a new copy with the assigned version.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pricing_atlas.config import CURRENCY, PLACEHOLDER_VERSION

VERSION_PATTERN = r"^v\d+\.\d+\.\d+$"
INFINITY = "Infinity"

# Numeric tier boundaries are never coerced from strings; only the sentinel is text.
TierBoundary = Annotated[float, Field(strict=True, gt=0)]


# =============================================================================
# Enums (Single Source of Truth)
# =============================================================================


class CanonicalUnit(str, Enum):
    """Closed set of billing units allowed in normalized output.

    Vendor unit strings are mapped onto these exactly; anything outside the
    set is rejected at normalization time.
    """

    HOUR = "hour"
    SECOND = "second"
    MINUTE = "minute"
    GB = "gb"
    GB_MONTH = "gb_month"
    GB_SECOND = "gb_second"
    REQUEST = "request"
    MILLION_REQUESTS = "million_requests"
    TRANSITION = "transition"
    FLAT = "flat"
    VCPU_HOUR = "vcpu_hour"
    ECPU_HOUR = "ecpu_hour"


class BumpType(str, Enum):
    """Semantic version bump severity."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @property
    def priority(self) -> int:
        """Numeric ordering for aggregation (higher wins)."""
        return {"major": 3, "minor": 2, "patch": 1}[self.value]


class ChangeType(str, Enum):
    """Classification of a single changed leaf.

    - SCHEMA: key added/removed or JSON type changed
    - PRICING: numeric value changed
    - METADATA: any other differing value (timestamps, labels)
    """

    SCHEMA = "schema"
    PRICING = "pricing"
    METADATA = "metadata"

    @property
    def bump(self) -> BumpType:
        return {
            "schema": BumpType.MAJOR,
            "pricing": BumpType.MINOR,
            "metadata": BumpType.PATCH,
        }[self.value]


class ServiceState(str, Enum):
    """Per-run lifecycle of a service, advanced strictly forward."""

    DOWNLOADED = "Downloaded"
    NORMALIZED = "Normalized"
    VALIDATED = "Validated"
    OUTPUT = "Output"
    VERSIONED = "Versioned"

    @property
    def order(self) -> int:
        return _STATE_ORDER.index(self)


_STATE_ORDER = [
    ServiceState.DOWNLOADED,
    ServiceState.NORMALIZED,
    ServiceState.VALIDATED,
    ServiceState.OUTPUT,
    ServiceState.VERSIONED,
]


# =============================================================================
# Pricing primitives
# =============================================================================


_PRIMITIVE_CONFIG = ConfigDict(
    extra="forbid",
    frozen=True,
    allow_inf_nan=False,
    populate_by_name=True,
    use_enum_values=False,
)


class SimpleRate(BaseModel):
    """A single flat rate for one unit."""

    model_config = _PRIMITIVE_CONFIG

    rate: float = Field(ge=0)
    unit: CanonicalUnit


class PricingTier(BaseModel):
    """One step of a tiered price: applies up to ``upTo`` units."""

    model_config = _PRIMITIVE_CONFIG

    up_to: Union[Literal["Infinity"], TierBoundary] = Field(alias="upTo")
    rate: float = Field(ge=0)
    unit: CanonicalUnit

    @property
    def is_terminal(self) -> bool:
        return self.up_to == INFINITY

    @property
    def boundary(self) -> float:
        """Numeric boundary, with the sentinel mapped to +inf."""
        return math.inf if self.up_to == INFINITY else float(self.up_to)


ComponentEntry = Union[SimpleRate, list[PricingTier]]


def normalize_timestamp(value: str) -> str:
    """Normalize an ISO-8601 timestamp to second-precision UTC with a Z suffix."""
    raw = str(value or "").strip()
    if not raw:
        raise ValueError("timestamp must be non-empty")
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class NormalizedServicePricing(BaseModel):
    """Canonical per-service, per-region pricing snapshot.

    Example:
        >>> snapshot = NormalizedServicePricing(
        ...     service="ec2",
        ...     region="us-east-1",
        ...     lastUpdated="2024-05-01T00:00:00Z",
        ...     components={"instances": {"t3.micro": {"rate": 0.0104, "unit": "hour"}}},
        ... )
        >>> snapshot.version
        'v0.0.0'
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    service: str = Field(min_length=1)
    region: str = Field(min_length=1)
    currency: Literal["USD"] = CURRENCY
    version: str = Field(default=PLACEHOLDER_VERSION, pattern=VERSION_PATTERN)
    last_updated: str = Field(alias="lastUpdated")
    components: dict[str, dict[str, ComponentEntry]]

    @field_validator("last_updated")
    @classmethod
    def validate_last_updated(cls, value: str) -> str:
        return normalize_timestamp(value)

    @model_validator(mode="after")
    def validate_tier_lists(self) -> "NormalizedServicePricing":
        for group, entries in self.components.items():
            for name, entry in entries.items():
                if isinstance(entry, list):
                    if not entry:
                        raise ValueError(f"components.{group}.{name}: empty tier list")
                    if not entry[-1].is_terminal:
                        raise ValueError(f"components.{group}.{name}: last tier must be Infinity")
        return self

    def with_version(self, version: str) -> "NormalizedServicePricing":
        """Return a copy carrying the assigned version."""
        if not re.match(VERSION_PATTERN, version):
            raise ValueError(f"invalid version: {version!r}")
        return self.model_copy(update={"version": version})

    def to_document(self) -> dict[str, Any]:
        """JSON-ready document with vendor-facing key names."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Run records
# =============================================================================


class DownloadManifest(BaseModel):
    """Record of which services downloaded successfully in a run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    downloaded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    timestamp: str

    @field_validator("downloaded", "failed")
    @classmethod
    def sort_codes(cls, value: list[str]) -> list[str]:
        if len(set(value)) != len(value):
            raise ValueError("service codes must be unique")
        return sorted(value)

    @model_validator(mode="after")
    def validate_disjoint(self) -> "DownloadManifest":
        overlap = set(self.downloaded) & set(self.failed)
        if overlap:
            raise ValueError(f"codes both downloaded and failed: {sorted(overlap)}")
        return self

    @property
    def ok(self) -> bool:
        return not self.failed


class ChangeRecord(BaseModel):
    """A single changed leaf between two snapshots."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service: str
    path: str
    change_type: ChangeType = Field(alias="changeType")
    old_value: Any = Field(default=None, alias="oldValue")
    new_value: Any = Field(default=None, alias="newValue")


class DiffResult(BaseModel):
    """Classified changes for one service against the previous latest."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service: str
    bump_type: BumpType = Field(alias="bumpType")
    reason: str
    is_new_service: bool = Field(default=False, alias="isNewService")
    is_removed_service: bool = Field(default=False, alias="isRemovedService")
    changes: list[ChangeRecord] = Field(default_factory=list)

    def changes_of(self, change_type: ChangeType) -> list[ChangeRecord]:
        return [change for change in self.changes if change.change_type is change_type]


class VersionInfo(BaseModel):
    """Current and next semantic version for a run."""

    model_config = ConfigDict(frozen=True)

    current: str
    next: str
    major: int = Field(ge=0)
    minor: int = Field(ge=0)
    patch: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_components(self) -> "VersionInfo":
        if self.next != f"v{self.major}.{self.minor}.{self.patch}":
            raise ValueError("next must match major/minor/patch")
        return self


class BumpCause(BaseModel):
    """Service and reason behind the aggregate bump."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service: Optional[str] = None
    bump_type: BumpType = Field(alias="bumpType")
    reason: str


class VersionMetadata(BaseModel):
    """Contents of ``metadata.json`` in a version directory."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str = Field(pattern=VERSION_PATTERN)
    created_at: str = Field(alias="createdAt")
    previous_version: Optional[str] = Field(default=None, alias="previousVersion")
    bump_cause: BumpCause = Field(alias="bumpCause")
    services: list[str] = Field(default_factory=list)

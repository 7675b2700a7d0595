"""PricingAtlas exception hierarchy.

Every failure in the pipeline is fatal for the run. Each stage raises a
specific error type carrying the service, the offending path and the
expected/actual values, so the CLI can print an actionable diagnostic.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class PricingPipelineError(Exception):
    """Base exception for all pipeline failures."""

    title = "Pricing pipeline failure"
    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        path: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
        details: Iterable[str] = (),
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.service = service
        self.path = path
        self.expected = expected
        self.actual = actual
        self.details = tuple(details)
        if hint is not None:
            self.hint = hint

    def __str__(self) -> str:
        prefix = f"[{self.service}] " if self.service else ""
        location = f" at {self.path}" if self.path else ""
        return f"{prefix}{self.message}{location}"

    def diagnostic(self) -> str:
        """Render a multi-section report for terminal output."""
        lines = [f"=== {self.title} ===", self.message, ""]
        context = [
            ("service", self.service),
            ("path", self.path),
            ("expected", self.expected),
            ("actual", self.actual),
        ]
        populated = [(label, value) for label, value in context if value is not None]
        if populated:
            lines.append("Context:")
            lines.extend(f"  {label}: {value}" for label, value in populated)
            lines.append("")
        if self.details:
            lines.append("Details:")
            lines.extend(f"  - {item}" for item in self.details)
            lines.append("")
        if self.hint:
            lines.append(f"Hint: {self.hint}")
        return "\n".join(lines).rstrip() + "\n"


class FetchFailure(PricingPipelineError):
    """Raised when one or more raw catalogs could not be downloaded."""

    title = "Fetch failure"
    hint = "Re-run the pipeline once the pricing endpoint is reachable; partial runs are never versioned."


class CatalogDecodeError(PricingPipelineError):
    """Raised when a raw catalog cannot be decoded into retained SKUs."""

    title = "Catalog decode failure"


class UnmappableUnit(PricingPipelineError):
    """Raised for a vendor unit string with no canonical mapping."""

    title = "Unmappable unit"
    hint = "Add an explicit entry to the unit table in pricing_atlas.normalize.units."


class UnmappableRegion(PricingPipelineError):
    """Raised for a region display name with no known region code."""

    title = "Unmappable region"
    hint = "Add the display name to pricing_atlas.normalize.regions.REGION_CODES."


class TierContinuityViolation(PricingPipelineError):
    """Raised when tier boundaries are unsorted, gapped or unterminated."""

    title = "Tier continuity violation"


class SchemaViolation(PricingPipelineError):
    """Raised when normalized output does not match its declared shape."""

    title = "Schema violation"


class MissingComponent(SchemaViolation):
    """Raised when a required pricing component has no matching SKU."""

    title = "Missing pricing component"
    hint = "The catalog shape or SKU filters changed; no default rate is ever substituted."


class NumericAnomaly(PricingPipelineError):
    """Raised for NaN, infinite, missing or negative rates."""

    title = "Numeric anomaly"


class ParityMismatch(PricingPipelineError):
    """Raised when fetched and processed service sets differ."""

    title = "Fetched/processed parity mismatch"
    hint = "Every enabled service needs a processor; disable the service or implement one."


class StateTransitionViolation(PricingPipelineError):
    """Raised when a service skips or repeats a lifecycle state."""

    title = "Service state transition violation"


class IncompleteServiceSupport(PricingPipelineError):
    """Raised when a service never reached the Versioned state."""

    title = "Incomplete service support"


class VersionDirectoryCollision(PricingPipelineError):
    """Raised when the target version directory already exists."""

    title = "Version directory collision"
    hint = "Published versions are immutable; inspect the latest pointer before re-running."

"""Tier expansion from vendor begin/end ranges, and the tiered-cost reference."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from pricing_atlas.catalog_stream import PriceDimension
from pricing_atlas.contracts import INFINITY, PricingTier
from pricing_atlas.errors import NumericAnomaly, SchemaViolation, TierContinuityViolation
from pricing_atlas.normalize.units import map_unit, parse_price

_OPEN_ENDS = {"Inf", "Infinity", "inf", ""}


def _parse_bound(raw: Optional[str], *, service: Optional[str], path: str) -> float:
    try:
        value = float(str(raw).strip())
    except ValueError as exc:
        raise TierContinuityViolation(
            "tier boundary is not numeric",
            service=service,
            path=path,
            expected="number",
            actual=raw,
        ) from exc
    if not math.isfinite(value) or value < 0:
        raise TierContinuityViolation(
            "tier boundary must be finite and >= 0",
            service=service,
            path=path,
            expected="finite number >= 0",
            actual=raw,
        )
    return value


def _begin_of(dimension: PriceDimension, *, service: Optional[str], path: str) -> float:
    if dimension.begin_range is None:
        return 0.0
    return _parse_bound(dimension.begin_range, service=service, path=path)


def expand_tiers(
    dimensions: Sequence[PriceDimension],
    *,
    service: Optional[str] = None,
    path: str = "",
) -> list[PricingTier]:
    """Convert price dimensions into an ordered, contiguous tier list.

    Dimensions are sorted by ``beginRange``; the first must start at 0 and
    each must start where the previous ended. An open ``endRange`` becomes
    the ``"Infinity"`` sentinel, which must appear exactly once, last.
    """
    if not dimensions:
        raise TierContinuityViolation(
            "no price dimensions to expand",
            service=service,
            path=path,
            expected="at least one tier",
            actual=0,
        )

    ordered = sorted(dimensions, key=lambda dim: _begin_of(dim, service=service, path=path))
    tiers: list[PricingTier] = []
    expected_begin = 0.0
    unit = None
    for index, dimension in enumerate(ordered):
        tier_path = f"{path}[{index}]"
        begin = _begin_of(dimension, service=service, path=tier_path)
        if tiers and tiers[-1].is_terminal:
            raise TierContinuityViolation(
                "tier follows the terminal Infinity tier",
                service=service,
                path=tier_path,
                expected="Infinity tier last",
                actual=dimension.rate_code,
            )
        if begin != expected_begin:
            raise TierContinuityViolation(
                "tier ranges are not contiguous",
                service=service,
                path=tier_path,
                expected=f"beginRange {expected_begin:g}",
                actual=f"beginRange {begin:g}",
            )

        tier_unit = map_unit(dimension.unit, service=service, path=f"{tier_path}.unit")
        if unit is not None and tier_unit != unit:
            raise SchemaViolation(
                "tiers mix billing units",
                service=service,
                path=f"{tier_path}.unit",
                expected=unit.value,
                actual=tier_unit.value,
            )
        unit = tier_unit
        rate = parse_price(dimension.usd, service=service, path=f"{tier_path}.rate")

        end_raw = dimension.end_range
        if end_raw is None or str(end_raw).strip() in _OPEN_ENDS:
            up_to: object = INFINITY
        else:
            end = _parse_bound(end_raw, service=service, path=tier_path)
            if end <= begin:
                raise TierContinuityViolation(
                    "tier boundaries must be strictly ascending",
                    service=service,
                    path=tier_path,
                    expected=f"endRange > {begin:g}",
                    actual=end_raw,
                )
            up_to = end
            expected_begin = end
        tiers.append(PricingTier(upTo=up_to, rate=rate, unit=tier_unit))

    if not tiers[-1].is_terminal:
        raise TierContinuityViolation(
            "tier list has no terminal Infinity tier",
            service=service,
            path=path,
            expected="last tier upTo=Infinity",
            actual=tiers[-1].up_to,
        )
    return tiers


def tiered_cost(quantity: float, tiers: Sequence[PricingTier]) -> float:
    """Sum each tier's share of ``quantity`` times its rate.

    Example: tiers up to 10240 @ 0.09, 51200 @ 0.085, Infinity @ 0.07 price
    15000 units at 10240*0.09 + 4760*0.085 = 1326.2.
    """
    if isinstance(quantity, bool) or not math.isfinite(quantity) or quantity < 0:
        raise NumericAnomaly(
            "quantity must be a finite non-negative number",
            expected="finite number >= 0",
            actual=quantity,
        )
    total = 0.0
    lower = 0.0
    for tier in tiers:
        upper = tier.boundary
        if quantity > lower:
            total += (min(quantity, upper) - lower) * tier.rate
        if quantity <= upper:
            break
        lower = upper
    return total

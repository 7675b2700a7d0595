"""Three independent checks over a normalized service document.

- numeric sanity: every rate-like leaf is a finite non-negative number
- tier continuity: every tier list is ascending and ends in one Infinity tier
- schema conformance: the document matches the processor's closed schema
"""

from __future__ import annotations

import math
from typing import Any, Union

from pricing_atlas.contracts import INFINITY, NormalizedServicePricing
from pricing_atlas.errors import NumericAnomaly, TierContinuityViolation
from pricing_atlas.json_tree import NodeKind, assert_never, child_path, is_number, json_type, kind_of, walk
from pricing_atlas.normalize.engine import ServiceProcessor
from pricing_atlas.validate.schema import build_service_schema, validate_against_schema

_RATE_KEYS = ("rate",)
_RATE_FRAGMENTS = ("price", "cost")


def _is_rate_key(key: str) -> bool:
    lowered = key.lower()
    return key in _RATE_KEYS or any(fragment in lowered for fragment in _RATE_FRAGMENTS)


def _require_rate(value: Any, *, service: str, path: str) -> None:
    if not is_number(value) or not math.isfinite(value) or value < 0:
        raise NumericAnomaly(
            "rate is not a finite non-negative number",
            service=service,
            path=path,
            expected="finite number >= 0",
            actual=value,
        )


def check_numeric_sanity(document: dict[str, Any], *, service: str) -> None:
    components = document.get("components")
    if kind_of(components) is not NodeKind.OBJECT:
        return
    for path, kind, node in walk(components, "components"):
        if kind is NodeKind.OBJECT:
            is_rate_object = "unit" in node or "upTo" in node
            if is_rate_object and "rate" not in node:
                raise NumericAnomaly(
                    "rate is missing",
                    service=service,
                    path=child_path(path, "rate"),
                    expected="finite number >= 0",
                    actual=None,
                )
            for key, value in node.items():
                if _is_rate_key(str(key)) and kind_of(value) is NodeKind.LEAF:
                    _require_rate(value, service=service, path=child_path(path, key))
            if "upTo" in node:
                up_to = node["upTo"]
                valid = up_to == INFINITY or (
                    is_number(up_to) and math.isfinite(up_to) and up_to > 0
                )
                if not valid:
                    raise NumericAnomaly(
                        "tier boundary is neither a positive number nor Infinity",
                        service=service,
                        path=child_path(path, "upTo"),
                        expected=f"number > 0 or {INFINITY!r}",
                        actual=up_to,
                    )
        elif kind is NodeKind.ARRAY or kind is NodeKind.LEAF:
            continue
        else:
            assert_never(kind)


def _check_tier_list(tiers: list[Any], *, service: str, path: str) -> None:
    if not tiers:
        raise TierContinuityViolation(
            "tier list is empty",
            service=service,
            path=path,
            expected="at least one tier",
            actual=0,
        )
    previous = 0.0
    for index, tier in enumerate(tiers):
        tier_path = child_path(path, index)
        up_to = tier.get("upTo") if isinstance(tier, dict) else None
        if up_to == INFINITY:
            if index != len(tiers) - 1:
                raise TierContinuityViolation(
                    "Infinity tier is not last",
                    service=service,
                    path=tier_path,
                    expected="Infinity only on the last tier",
                    actual=f"Infinity at index {index} of {len(tiers)}",
                )
            return
        if not is_number(up_to) or up_to <= previous:
            raise TierContinuityViolation(
                "tier boundaries are not strictly ascending",
                service=service,
                path=child_path(tier_path, "upTo"),
                expected=f"> {previous:g}",
                actual=up_to,
            )
        previous = float(up_to)
    raise TierContinuityViolation(
        "tier list has no terminal Infinity tier",
        service=service,
        path=path,
        expected=f"last upTo={INFINITY}",
        actual=tiers[-1].get("upTo") if isinstance(tiers[-1], dict) else tiers[-1],
    )


def check_tier_continuity(document: dict[str, Any], *, service: str) -> None:
    components = document.get("components")
    if kind_of(components) is not NodeKind.OBJECT:
        return
    for path, kind, node in walk(components, "components"):
        if kind is NodeKind.ARRAY:
            _check_tier_list(list(node), service=service, path=path)


def validate_service_pricing(
    snapshot: Union[NormalizedServicePricing, dict[str, Any]],
    processor: ServiceProcessor,
) -> dict[str, Any]:
    """Run all three checks; return the validated JSON document."""
    document = snapshot.to_document() if isinstance(snapshot, NormalizedServicePricing) else snapshot
    if json_type(document) != "object":
        raise TypeError("document must be a JSON object")
    service = str(document.get("service") or processor.slug)
    check_numeric_sanity(document, service=service)
    check_tier_continuity(document, service=service)
    validate_against_schema(document, build_service_schema(processor), service=service)
    return document

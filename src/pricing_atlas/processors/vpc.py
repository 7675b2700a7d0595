"""VPC: NAT gateway and interface endpoint charges.

Usage types carry a region prefix (``USE2-NatGateway-Hours``), so entries
are matched on the suffix.
"""

from __future__ import annotations

from pricing_atlas.contracts import CanonicalUnit
from pricing_atlas.normalize.engine import ComponentRule, ServiceProcessor

PROCESSOR = ServiceProcessor(
    "vpc",
    (
        ComponentRule(
            group="natGateway",
            key_attribute="usagetype",
            aliases={"NatGateway-Hours": "hourly"},
            suffix_match=True,
            unit=CanonicalUnit.HOUR,
            required=("hourly",),
        ),
        ComponentRule(
            group="natGateway",
            key_attribute="usagetype",
            aliases={"NatGateway-Bytes": "dataProcessed"},
            suffix_match=True,
            unit=CanonicalUnit.GB,
            required=("dataProcessed",),
        ),
        ComponentRule(
            group="endpoint",
            key_attribute="usagetype",
            aliases={"VpcEndpoint-Hours": "hourly"},
            suffix_match=True,
            unit=CanonicalUnit.HOUR,
            required=("hourly",),
        ),
        ComponentRule(
            group="endpoint",
            key_attribute="usagetype",
            aliases={"VpcEndpoint-Bytes": "dataProcessed"},
            suffix_match=True,
            tiered=True,
            unit=CanonicalUnit.GB,
            required=("dataProcessed",),
        ),
    ),
)

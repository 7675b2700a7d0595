"""S3: tiered storage by class, request tiers and outbound transfer."""

from __future__ import annotations

from pricing_atlas.contracts import CanonicalUnit
from pricing_atlas.normalize.engine import ComponentRule, ServiceProcessor
from pricing_atlas.normalize.filters import allow

STORAGE_CLASSES = {
    "Standard": "standard",
    "Intelligent-Tiering Frequent Access": "intelligentTiering",
    "Standard - Infrequent Access": "standardIA",
    "One Zone - Infrequent Access": "oneZoneIA",
    "Amazon Glacier": "glacier",
    "Glacier Deep Archive": "glacierDeepArchive",
}

PROCESSOR = ServiceProcessor(
    "s3",
    (
        ComponentRule(
            group="storage",
            key_attribute="volumeType",
            filters=(allow("productFamily", "Storage"),),
            aliases=STORAGE_CLASSES,
            tiered=True,
            unit=CanonicalUnit.GB_MONTH,
            required=("standard",),
        ),
        ComponentRule(
            group="requests",
            key_attribute="group",
            filters=(allow("productFamily", "API Request"),),
            aliases={"S3-API-Tier1": "tier1", "S3-API-Tier2": "tier2"},
            unit=CanonicalUnit.REQUEST,
            required=("tier1", "tier2"),
        ),
        ComponentRule(
            group="dataTransfer",
            key_attribute="transferType",
            filters=(
                allow("productFamily", "Data Transfer"),
                allow("toLocation", "External", description="internet egress only"),
            ),
            aliases={"AWS Outbound": "out"},
            tiered=True,
            unit=CanonicalUnit.GB,
            required=("out",),
        ),
    ),
)

"""EC2: on-demand Linux instances, EBS volumes, snapshots, Elastic IPs and egress."""

from __future__ import annotations

from pricing_atlas.contracts import CanonicalUnit
from pricing_atlas.normalize.engine import ComponentRule, ServiceProcessor
from pricing_atlas.normalize.filters import allow

INSTANCE_FILTERS = (
    allow("productFamily", "Compute Instance"),
    allow("operatingSystem", "Linux", description="Linux only"),
    allow("tenancy", "Shared", description="shared tenancy only"),
    allow("capacitystatus", "Used", description="exclude reservations and capacity blocks"),
    allow("preInstalledSw", "NA", description="no pre-installed software"),
    allow("licenseModel", "No License required"),
)

EBS_VOLUME_TYPES = {
    "gp2": "gp2",
    "gp3": "gp3",
    "io1": "io1",
    "io2": "io2",
    "st1": "st1",
    "sc1": "sc1",
    "standard": "standard",
}

PROCESSOR = ServiceProcessor(
    "ec2",
    (
        ComponentRule(
            group="instances",
            key_attribute="instanceType",
            filters=INSTANCE_FILTERS,
            unit=CanonicalUnit.HOUR,
        ),
        ComponentRule(
            group="ebs",
            key_attribute="volumeApiName",
            filters=(allow("productFamily", "Storage"),),
            aliases=EBS_VOLUME_TYPES,
            unit=CanonicalUnit.GB_MONTH,
            required=("gp2", "gp3"),
        ),
        ComponentRule(
            group="snapshots",
            key_attribute="usagetype",
            filters=(allow("productFamily", "Storage Snapshot"),),
            aliases={"EBS:SnapshotUsage": "storage"},
            suffix_match=True,
            unit=CanonicalUnit.GB_MONTH,
            required=("storage",),
        ),
        ComponentRule(
            group="elasticIP",
            key_attribute="usagetype",
            filters=(allow("productFamily", "IP Address"),),
            aliases={
                "ElasticIP:IdleAddress": "idle",
                "ElasticIP:AdditionalAddress": "additional",
            },
            suffix_match=True,
            unit=CanonicalUnit.HOUR,
            required=("idle",),
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

"""Per-service normalization strategies, keyed by AWS service code."""

from __future__ import annotations

from pricing_atlas.normalize.engine import ServiceProcessor
from pricing_atlas.processors.aws_lambda import PROCESSOR as LAMBDA_PROCESSOR
from pricing_atlas.processors.ec2 import PROCESSOR as EC2_PROCESSOR
from pricing_atlas.processors.rds import PROCESSOR as RDS_PROCESSOR
from pricing_atlas.processors.s3 import PROCESSOR as S3_PROCESSOR
from pricing_atlas.processors.vpc import PROCESSOR as VPC_PROCESSOR

PROCESSORS: dict[str, ServiceProcessor] = {
    "AmazonEC2": EC2_PROCESSOR,
    "AmazonS3": S3_PROCESSOR,
    "AWSLambda": LAMBDA_PROCESSOR,
    "AmazonVPC": VPC_PROCESSOR,
    "AmazonRDS": RDS_PROCESSOR,
}

__all__ = ["PROCESSORS"]

"""Grouping helpers that split attestation streams per construction."""

from .bucketing import BucketKey, BucketPlan, build_bucket_plan, token_streams, token_streams_from_frame

__all__ = [
    "BucketKey",
    "BucketPlan",
    "build_bucket_plan",
    "token_streams",
    "token_streams_from_frame",
]

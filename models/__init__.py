"""
Model definitions for RefineEngine administration scripts.
"""

from .buckets import (
    AddBucketResult,
    BucketSpec,
)

__all__ = [
    "AddBucketResult",
    "BucketSpec",
]

# src/aws_s3_sync/__init__.py
"""
aws-s3-sync: one-way synchronization of an S3 prefix between two buckets.

Objects missing at the destination, or whose ETag differs from the source,
are copied by a bounded pool of concurrent workers. Nothing is ever deleted
at the destination.

The primary entry point for programmatic use is the `SyncPipeline` class.
"""

from typing import List

from aws_s3_sync.pipeline import RunSummary, SyncPipeline

__all__: List[str] = ["RunSummary", "SyncPipeline"]

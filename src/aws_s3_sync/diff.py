# src/aws_s3_sync/diff.py
"""Determines which source objects are missing or stale at the destination."""

import logging
from typing import AsyncIterable, AsyncIterator, Dict, Optional

from aws_s3_sync.lister import ObjectRecord

logger: logging.Logger = logging.getLogger(__name__)

DestinationIndex = Dict[str, ObjectRecord]


async def build_destination_index(
    records: AsyncIterable[ObjectRecord],
) -> DestinationIndex:
    """
    Consumes a full destination listing into a key -> record mapping.

    Args:
        records (AsyncIterable[ObjectRecord]): The destination listing.

    Returns:
        DestinationIndex: The records by key. A repeated key keeps the last
            record seen.
    """
    index: DestinationIndex = {}
    async for record in records:
        index[record.key] = record
    logger.debug(f"Destination index holds {len(index)} objects")
    return index


def needs_transfer(record: ObjectRecord, dest_index: DestinationIndex) -> bool:
    """
    Tells whether `record` is absent from `dest_index` or has another ETag.

    Sizes are not compared.
    """
    existing: Optional[ObjectRecord] = dest_index.get(record.key)
    return existing is None or existing.etag != record.etag


async def diff_objects(
    dest_index: DestinationIndex,
    source_records: AsyncIterable[ObjectRecord],
) -> AsyncIterator[ObjectRecord]:
    """
    Yields the source records that must be copied, in source order.

    Args:
        dest_index (DestinationIndex): The fully built destination index.
        source_records (AsyncIterable[ObjectRecord]): The source listing,
            consumed lazily.

    Yields:
        ObjectRecord: Each source record for which `needs_transfer` holds.
    """
    async for record in source_records:
        if needs_transfer(record, dest_index):
            yield record

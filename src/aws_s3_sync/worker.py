# src/aws_s3_sync/worker.py
"""
Defines the core transfer worker function.

This module contains the logic for a single worker task that pulls work
items from a bounded queue, copies each object by buffering it in memory,
and reports one result per item.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from aws_s3_sync.client import BucketHandle
from aws_s3_sync.exceptions import TransferError
from aws_s3_sync.lister import ObjectRecord

if TYPE_CHECKING:
    from aiobotocore.response import StreamingBody
    from types_aiobotocore_s3.type_defs import GetObjectOutputTypeDef

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkItem:
    """
    One object to copy, bound to both endpoints.

    Attributes:
        record (ObjectRecord): The source object's metadata.
        source (BucketHandle): Where the object is read from.
        destination (BucketHandle): Where the object is written to.
    """

    record: ObjectRecord
    source: BucketHandle
    destination: BucketHandle

    @property
    def key(self) -> str:
        return self.record.key

    @property
    def size(self) -> int:
        return self.record.size


@dataclass(frozen=True)
class TransferResult:
    """
    The outcome of one copy attempt.

    Attributes:
        key (str): The copied object's key.
        size (int): The declared object size, reported whatever the outcome.
        error (TransferError, optional): The failure, or None on success.
    """

    key: str
    size: int
    error: Optional[TransferError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@contextlib.contextmanager
def _copy_step(step: str, handle: BucketHandle, key: str) -> Iterator[None]:
    """Re-raises any failure inside the block as a `TransferError`."""
    try:
        yield
    except TransferError:
        raise
    except Exception as e:
        raise TransferError(
            f"couldn't {step} '{handle.uri(key)}': {e}", step=step, key=key
        ) from e


async def copy_object(item: WorkItem) -> None:
    """
    Copies a single object from its source to its destination.

    The body is fully read into memory and its stream closed before the
    destination write starts. The destination key is the source key, and
    the source content type is carried over when present.

    Args:
        item (WorkItem): The object to copy.

    Raises:
        TransferError: If the get, read, close or put step fails.
    """
    key: str = item.key

    with _copy_step("get", item.source, key):
        response: "GetObjectOutputTypeDef" = await item.source.client.get_object(
            Bucket=item.source.bucket, Key=key
        )

    body: "StreamingBody" = response["Body"]
    try:
        with _copy_step("read", item.source, key):
            body_bytes: bytes = await body.read()
    except BaseException:
        # The read failure is the one reported
        try:
            body.close()
        except Exception as e:
            logger.warning(f"Couldn't close '{item.source.uri(key)}': {e}")
        raise

    with _copy_step("close", item.source, key):
        body.close()

    put_kwargs: Dict[str, Any] = {
        "Bucket": item.destination.bucket,
        "Key": key,
        "Body": body_bytes,
    }
    content_type: Optional[str] = response.get("ContentType")
    if content_type:
        put_kwargs["ContentType"] = content_type

    with _copy_step("put", item.destination, key):
        await item.destination.client.put_object(**put_kwargs)

    logger.debug(
        f"Copied '{item.source.uri(key)}' -> '{item.destination.uri(key)}' "
        f"({len(body_bytes)} bytes)"
    )


async def transfer_worker(
    worker_id: int,
    work_queue: asyncio.Queue[Optional[WorkItem]],
    results_queue: asyncio.Queue[Optional[TransferResult]],
) -> None:
    """
    A long-lived worker task that copies items from a queue.

    The worker runs until it receives the `None` sentinel. A failed copy is
    reported on `results_queue` like any other result, after which the
    worker stops taking work. Unexpected exceptions are reported the same
    way, as a `TransferError` with step `copy`, so every item taken from
    the queue yields exactly one result.

    Args:
        worker_id (int): A unique identifier for this worker.
        work_queue (asyncio.Queue[Optional[WorkItem]]): The queue from which
            to pull items. `None` marks the end of the work.
        results_queue (asyncio.Queue[Optional[TransferResult]]): The queue
            on which one result per item is reported.
    """
    logger.debug(f"Worker {worker_id} started.")
    while True:
        item: Optional[WorkItem] = await work_queue.get()
        if item is None:  # Sentinel value to signal completion
            break

        error: Optional[TransferError] = None
        try:
            await copy_object(item)
        except TransferError as e:
            error = e
        except Exception as e:
            error = TransferError(
                f"couldn't copy '{item.source.uri(item.key)}': {e}",
                step="copy",
                key=item.key,
            )
            error.__cause__ = e

        if error is not None:
            await results_queue.put(
                TransferResult(key=item.key, size=item.size, error=error)
            )
            logger.debug(f"Worker {worker_id} stopping after a failed copy.")
            return

        await results_queue.put(TransferResult(key=item.key, size=item.size))
    logger.debug(f"Worker {worker_id} shutting down.")

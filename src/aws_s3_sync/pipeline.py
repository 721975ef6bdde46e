# src/aws_s3_sync/pipeline.py
"""Core orchestration logic for the aws-s3-sync pipeline."""

import asyncio
import contextlib
import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from aws_s3_sync.client import BucketHandle, S3ClientFactory
from aws_s3_sync.config import Config
from aws_s3_sync.diff import DestinationIndex, build_destination_index, diff_objects
from aws_s3_sync.lister import list_objects
from aws_s3_sync.progress import ByteProgress
from aws_s3_sync.worker import TransferResult, WorkItem, transfer_worker

logger: logging.Logger = logging.getLogger(__name__)

ProgressFactory = Callable[[int], ByteProgress]


@dataclass(frozen=True)
class RunSummary:
    """
    What a run found to copy, and how much of it was copied.

    Attributes:
        object_count (int): Number of objects missing or changed at the
            destination.
        total_bytes (int): Sum of their sizes.
        transferred (int): Number of objects actually copied.
    """

    object_count: int
    total_bytes: int
    transferred: int = 0


class SyncPipeline:
    """Orchestrates one sync run from listing to the last copy."""

    def __init__(
        self,
        config: Config,
        client_factory: Optional[S3ClientFactory] = None,
        progress_factory: ProgressFactory = ByteProgress,
    ) -> None:
        """
        Initializes the pipeline with the given configuration.

        Args:
            config (Config): The application configuration.
            client_factory (S3ClientFactory, optional): Builds the source and
                destination clients. Defaults to a profile-based factory
                with a connection pool sized for the worker count.
            progress_factory (ProgressFactory): Builds the progress display
                from the total number of bytes to copy.
        """
        self._config: Config = config
        self._client_factory: S3ClientFactory = client_factory or S3ClientFactory(
            max_pool_connections=config.app.num_workers + 10
        )
        self._progress_factory: ProgressFactory = progress_factory

    async def run(self) -> RunSummary:
        """
        Executes the full synchronization pipeline.

        The destination is listed first into an index, the source listing
        is diffed against it, and the resulting objects are copied unless
        this is a dry run or there is nothing to copy.

        Returns:
            RunSummary: The size of the diff and the number of copied objects.

        Raises:
            CredentialError: If a client cannot be created.
            ListingError: If either listing fails.
            TransferError: If any object copy fails.
        """
        prefix: str = self._config.app.prefix
        logger.info(
            f"Copy from s3://{self._config.source.bucket}/{prefix} "
            f"to s3://{self._config.destination.bucket}/{prefix}"
        )

        async with contextlib.AsyncExitStack() as stack:
            source: BucketHandle = await self._client_factory.create(
                stack, self._config.source
            )
            destination: BucketHandle = await self._client_factory.create(
                stack, self._config.destination
            )

            items: List[WorkItem] = await self._collect_work_items(source, destination)
            summary: RunSummary = RunSummary(
                object_count=len(items),
                total_bytes=sum(item.size for item in items),
            )
            logger.info(f"{summary.object_count} objects to copy")
            logger.info(f"{summary.total_bytes // 1024} KiB")

            if self._config.app.dry_run:
                logger.info("Dry run requested, no objects were copied.")
                return summary
            if summary.total_bytes == 0:
                logger.info("Nothing to copy. Pipeline finished.")
                return summary

            transferred: int = await self._run_transfers(items, summary.total_bytes)

        return dataclasses.replace(summary, transferred=transferred)

    async def _collect_work_items(
        self, source: BucketHandle, destination: BucketHandle
    ) -> List[WorkItem]:
        """
        Lists both sides and returns the objects to copy, in source order.

        Args:
            source (BucketHandle): The bucket objects are copied from.
            destination (BucketHandle): The bucket objects are copied to.

        Returns:
            List[WorkItem]: One item per missing or changed object.
        """
        prefix: str = self._config.app.prefix
        logger.info(f"Listing destination '{destination.uri(prefix)}'...")
        dest_index: DestinationIndex = await build_destination_index(
            list_objects(destination, prefix)
        )

        logger.info(f"Comparing against source '{source.uri(prefix)}'...")
        return [
            WorkItem(record=record, source=source, destination=destination)
            async for record in diff_objects(dest_index, list_objects(source, prefix))
        ]

    async def _produce(
        self,
        items: List[WorkItem],
        work_queue: asyncio.Queue[Optional[WorkItem]],
        results_queue: asyncio.Queue[Optional[TransferResult]],
        worker_tasks: List[asyncio.Task[None]],
    ) -> None:
        """
        Feeds the work queue, then closes the results queue.

        The results queue receives its `None` sentinel only once every
        worker has exited.

        Args:
            items (List[WorkItem]): The items to enqueue, in order.
            work_queue (asyncio.Queue[Optional[WorkItem]]): The bounded work queue.
            results_queue (asyncio.Queue[Optional[TransferResult]]): The queue
                drained by the orchestrator.
            worker_tasks (List[asyncio.Task[None]]): The running workers.
        """
        try:
            for item in items:
                await work_queue.put(item)
            # Signal workers to exit
            for _ in worker_tasks:
                await work_queue.put(None)
            await asyncio.gather(*worker_tasks)
        finally:
            results_queue.put_nowait(None)

    async def _run_transfers(self, items: List[WorkItem], total_bytes: int) -> int:
        """
        Copies `items` with a fixed pool of workers, failing fast.

        Args:
            items (List[WorkItem]): The objects to copy.
            total_bytes (int): The sum of their sizes, for the progress display.

        Returns:
            int: The number of objects copied.

        Raises:
            TransferError: The first copy failure reported by a worker.
        """
        num_workers: int = min(self._config.app.num_workers, len(items))
        work_queue: asyncio.Queue[Optional[WorkItem]] = asyncio.Queue(maxsize=1)
        results_queue: asyncio.Queue[Optional[TransferResult]] = asyncio.Queue()

        worker_tasks: List[asyncio.Task[None]] = [
            asyncio.create_task(transfer_worker(i, work_queue, results_queue))
            for i in range(num_workers)
        ]
        producer_task: asyncio.Task[None] = asyncio.create_task(
            self._produce(items, work_queue, results_queue, worker_tasks)
        )
        logger.info(f"Copying {len(items)} objects with {num_workers} workers.")

        transferred: int = 0
        try:
            with self._progress_factory(total_bytes) as progress:
                while True:
                    result: Optional[TransferResult] = await results_queue.get()
                    if result is None:
                        break
                    progress.advance(result.size)
                    if result.error is not None:
                        logger.error(f"Stopping run: {result.error}")
                        raise result.error
                    transferred += 1
            # Re-raises anything the producer or a worker raised
            await producer_task
        finally:
            producer_task.cancel()
            for task in worker_tasks:
                task.cancel()
            await asyncio.gather(producer_task, *worker_tasks, return_exceptions=True)

        logger.info(f"All {transferred} objects have been copied.")
        return transferred

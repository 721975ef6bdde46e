# src/aws_s3_sync/progress.py
"""Byte-level progress display backed by `rich`."""

import logging
from types import TracebackType
from typing import Optional, Type

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

logger: logging.Logger = logging.getLogger(__name__)


class ByteProgress:
    """
    A progress bar sized in bytes.

    Rendering failures are logged and never interrupt the caller.
    """

    def __init__(self, total: int, description: str = "uploading") -> None:
        """
        Initialize the progress bar.

        Args:
            total (int): The number of bytes expected.
            description (str): The label shown next to the bar.
        """
        self.total: int = total
        self.completed: int = 0
        self._progress: Progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
        )
        self._task_id: TaskID = self._progress.add_task(description, total=total)

    def __enter__(self) -> "ByteProgress":
        self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self._progress.stop()

    def advance(self, num_bytes: int) -> None:
        """
        Adds `num_bytes` to the completed total.

        Args:
            num_bytes (int): The number of bytes just accounted for.
        """
        self.completed += num_bytes
        try:
            self._progress.update(self._task_id, advance=num_bytes)
        except Exception as e:
            logger.warning(f"Couldn't update progress display: {e}")

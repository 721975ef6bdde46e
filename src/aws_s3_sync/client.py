# src/aws_s3_sync/client.py
"""
Construction of authenticated S3 clients.

Clients are built from named shared-config profiles with aiobotocore and
registered on the caller's `AsyncExitStack`, so their lifetime is tied to
the run that opened them.
"""

import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from aiobotocore.session import AioSession
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError

from aws_s3_sync.config import S3Config
from aws_s3_sync.exceptions import CredentialError

if TYPE_CHECKING:
    from types_aiobotocore_s3.client import S3Client

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketHandle:
    """
    An S3 client bound to a single bucket.

    Attributes:
        client (S3Client): An initialized aiobotocore S3 client.
        bucket (str): The bucket every request made through this handle targets.
    """

    client: "S3Client"
    bucket: str

    def uri(self, key: str = "") -> str:
        return f"s3://{self.bucket}/{key}"


class S3ClientFactory:
    """Builds `BucketHandle`s from profile-based configuration."""

    def __init__(self, max_pool_connections: int = 100) -> None:
        """
        Initialize the factory.

        Args:
            max_pool_connections (int): Size of each client's HTTP pool. It
                should not be smaller than the number of copy workers.
        """
        self._boto_config: BotoConfig = BotoConfig(
            signature_version="s3v4",
            max_pool_connections=max_pool_connections,
        )

    async def create(
        self, stack: contextlib.AsyncExitStack, s3_config: S3Config
    ) -> BucketHandle:
        """
        Creates a client for `s3_config` and enters it on `stack`.

        Args:
            stack (AsyncExitStack): The exit stack that will close the client.
            s3_config (S3Config): The side of the sync to build a client for.

        Returns:
            BucketHandle: The client bound to `s3_config.bucket`.

        Raises:
            CredentialError: If the profile or its configuration is unusable.
        """
        profile_name: str = s3_config.profile or "default"
        try:
            session: AioSession = AioSession(profile=s3_config.profile or None)
            client: "S3Client" = await stack.enter_async_context(
                session.create_client(
                    "s3",
                    **s3_config.as_client_dict(),
                    config=self._boto_config,
                )
            )
        except BotoCoreError as e:
            raise CredentialError(
                f"Couldn't load AWS configuration for profile '{profile_name}'. "
                f"Have you set up your AWS account? ({e})"
            ) from e

        logger.debug(
            f"S3 client ready for bucket '{s3_config.bucket}' "
            f"(profile '{profile_name}')"
        )
        return BucketHandle(client=client, bucket=s3_config.bucket)

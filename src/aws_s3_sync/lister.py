# src/aws_s3_sync/lister.py
"""
Lazy, paged listing of the objects under a bucket prefix.

The listing is exposed as an async generator over the client's
`list_objects_v2` paginator. Pages are requested one at a time, so a
consumer that stops iterating early never triggers the remaining page
requests.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from aws_s3_sync.client import BucketHandle
from aws_s3_sync.exceptions import CredentialError, ListingError

if TYPE_CHECKING:
    from types_aiobotocore_s3.paginator import ListObjectsV2Paginator
    from types_aiobotocore_s3.type_defs import ListObjectsV2OutputTypeDef

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectRecord:
    """
    Snapshot of one object's metadata at listing time.

    Attributes:
        key (str): The object key, unique within a bucket.
        etag (str): Opaque content tag, compared verbatim.
        size (int): Object size in bytes.
    """

    key: str
    etag: str
    size: int


async def list_objects(
    handle: BucketHandle,
    prefix: str = "",
    page_size: Optional[int] = None,
) -> AsyncIterator[ObjectRecord]:
    """
    Yields every object under `prefix`, page by page.

    Args:
        handle (BucketHandle): The bucket to list.
        prefix (str): Only keys starting with this prefix are listed.
        page_size (int, optional): Number of keys requested per page.

    Yields:
        ObjectRecord: The objects in the backend's listing order.

    Raises:
        CredentialError: If no AWS credentials could be found.
        ListingError: If any page request fails.
    """
    kwargs: Dict[str, Any] = {"Bucket": handle.bucket, "Prefix": prefix}
    if page_size is not None:
        kwargs["PaginationConfig"] = {"PageSize": page_size}

    paginator: "ListObjectsV2Paginator" = handle.client.get_paginator(
        "list_objects_v2"
    )
    pages: AsyncIterator["ListObjectsV2OutputTypeDef"] = paginator.paginate(**kwargs)

    num_pages: int = 0
    try:
        async for page in pages:
            num_pages += 1
            for content in page.get("Contents", []):
                yield ObjectRecord(
                    key=content["Key"],
                    etag=content["ETag"],
                    size=content["Size"],
                )
    except NoCredentialsError as e:
        raise CredentialError(
            f"Couldn't list '{handle.uri(prefix)}': {e}. "
            "Have you set up your AWS account?"
        ) from e
    except (ClientError, BotoCoreError) as e:
        raise ListingError(
            f"Couldn't list objects under '{handle.uri(prefix)}': {e}"
        ) from e

    logger.debug(f"Listed '{handle.uri(prefix)}' in {num_pages} page(s)")

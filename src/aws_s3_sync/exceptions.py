# src/aws_s3_sync/exceptions.py
"""Custom exceptions for the aws-s3-sync application."""

from typing import Optional


class AwsS3SyncError(Exception):
    """Base exception for all application-specific errors."""

    pass


class ConfigError(AwsS3SyncError):
    """Raised for configuration-related issues."""

    pass


class CredentialError(ConfigError):
    """Raised when an S3 client cannot be built from a profile."""

    pass


class ListingError(AwsS3SyncError):
    """Raised when a page of a bucket listing cannot be fetched."""

    pass


class TransferError(AwsS3SyncError):
    """
    Raised when a single object copy fails.

    Attributes:
        step (str): The copy step that failed (`get`, `read`, `close`, `put`),
            or `copy` for a failure outside those steps.
        key (str, optional): The key of the object being copied.
    """

    def __init__(self, message: str, step: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.step: str = step
        self.key: Optional[str] = key

# src/aws_s3_sync/config.py
"""
Configuration for the aws-s3-sync pipeline.

This module holds the typed, immutable configuration used throughout the
application, and the parser for the plain-text configuration file that
feeds the CLI defaults.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from aws_s3_sync.exceptions import ConfigError

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_NUM_WORKERS: int = 50


@dataclass(frozen=True)
class S3Config:
    """
    Represents one side (source or destination) of a sync.

    Attributes:
        bucket (str): The bucket name.
        profile (str, optional): The shared-config profile used to build
            the client. `None` uses the default credential chain.
        endpoint_url (str, optional): A custom endpoint for S3-compatible
            providers.
    """

    bucket: str
    profile: Optional[str] = None
    endpoint_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.bucket:
            raise ConfigError("A bucket name must be set.")

    def as_client_dict(self) -> Dict[str, str]:
        """
        Returns the extra keyword arguments for `create_client`.

        Returns:
            Dict[str, str]: A dictionary of client parameters.
        """
        if self.endpoint_url:
            return {"endpoint_url": self.endpoint_url}
        return {}


@dataclass(frozen=True)
class AppConfig:
    """
    Defines the application's operational parameters.

    Attributes:
        prefix (str): Key prefix restricting the listing on both sides.
        dry_run (bool): Compute and report the diff without copying.
        num_workers (int): Maximum number of concurrent copy workers.
    """

    prefix: str = ""
    dry_run: bool = False
    num_workers: int = DEFAULT_NUM_WORKERS

    def __post_init__(self) -> None:
        if self.num_workers < 1:
            raise ConfigError(
                f"The number of workers must be at least 1, got {self.num_workers}."
            )


@dataclass(frozen=True)
class Config:
    """
    Top-level configuration container for the entire application.

    Attributes:
        source (S3Config): The bucket objects are copied from.
        destination (S3Config): The bucket objects are copied to.
        app (AppConfig): General application settings.
    """

    source: S3Config
    destination: S3Config
    app: AppConfig = field(default_factory=AppConfig)


def _normalize_name(name: str) -> str:
    return name.lstrip("-").replace("-", "_").lower()


def load_config_file(
    path: Path, allowed: Optional[Iterable[str]] = None
) -> Dict[str, str]:
    """
    Parses a plain-text configuration file.

    Each non-blank line holds an option name and an optional value separated
    by whitespace, e.g. `source-bucket my-bucket`. Names may carry leading
    dashes and use `-` or `_`. A name without a value is read as `true`.
    Lines starting with `#` are comments.

    Args:
        path (Path): The file to read.
        allowed (Iterable[str], optional): Accepted option names, in their
            normalized (`snake_case`) form. Any other name is rejected.

    Returns:
        Dict[str, str]: Normalized option names mapped to their raw values.

    Raises:
        ConfigError: If the file cannot be read or names an unknown option.
    """
    try:
        lines: List[str] = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ConfigError(f"Couldn't read config file '{path}': {e}") from e

    allowed_names: Optional[set] = (
        {_normalize_name(n) for n in allowed} if allowed is not None else None
    )
    values: Dict[str, str] = {}
    for lineno, raw_line in enumerate(lines, start=1):
        line: str = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        parts: List[str] = line.split(maxsplit=1)
        name: str = _normalize_name(parts[0])
        value: str = parts[1].strip() if len(parts) > 1 else "true"

        if allowed_names is not None and name not in allowed_names:
            raise ConfigError(
                f"Unknown option '{parts[0]}' in config file '{path}' "
                f"(line {lineno})."
            )
        values[name] = value

    logger.debug(f"Loaded {len(values)} option(s) from '{path}'")
    return values

# src/aws_s3_sync/cli.py
"""Command-line interface for the aws-s3-sync tool."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from dotenv import load_dotenv
from rich.logging import RichHandler

from aws_s3_sync.config import (
    DEFAULT_NUM_WORKERS,
    AppConfig,
    Config,
    S3Config,
    load_config_file,
)
from aws_s3_sync.exceptions import AwsS3SyncError, ConfigError
from aws_s3_sync.pipeline import RunSummary, SyncPipeline

logger: logging.Logger = logging.getLogger(__name__)

ENV_VAR_PREFIX: str = "AWS_S3_SYNC"

EXIT_STATUS_HELP: str = (
    "Exit status is 0 on success and 1 when the run fails. Invalid usage, "
    "such as a missing bucket, exits with 2 after printing the usage. An "
    "interrupted run exits with 130."
)


def setup_logging(level: str) -> None:
    """Configure rich-based logging for the application."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # Silence noisy loggers
    for logger_name in ["botocore", "aiobotocore", "urllib3"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def _load_config_file(
    ctx: click.Context, param: click.Parameter, value: Optional[str]
) -> Optional[str]:
    """
    Feeds the options found in the config file into the context defaults.

    Values given on the command line or through the environment still take
    precedence over the file.
    """
    if not value:
        return value

    allowed: List[str] = [
        p.name for p in ctx.command.params if p.name and p.name != param.name
    ]
    try:
        values: Dict[str, str] = load_config_file(Path(value), allowed)
    except ConfigError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e

    ctx.default_map = {**(ctx.default_map or {}), **values}
    return value


async def main_async(config: Config) -> RunSummary:
    """
    Asynchronously execute the sync pipeline.

    Args:
        config (Config): The application configuration.

    Returns:
        RunSummary: The outcome of the run.
    """
    pipeline: SyncPipeline = SyncPipeline(config)
    return await pipeline.run()


@click.command(
    context_settings=dict(
        help_option_names=["-h", "--help"],
        auto_envvar_prefix=ENV_VAR_PREFIX,
    ),
    epilog=EXIT_STATUS_HELP,
)
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    is_eager=True,
    expose_value=False,
    callback=_load_config_file,
    help="Plain-text file of `option value` lines used as defaults.",
)
@click.option("--source-bucket", required=True, help="Source bucket.")
@click.option("--dest-bucket", required=True, help="Destination bucket.")
@click.option("--source-profile", default="", help="Source AWS profile.")
@click.option("--dest-profile", default="", help="Destination AWS profile.")
@click.option("--prefix", default="", help="Key prefix to sync.")
@click.option(
    "--dryrun",
    is_flag=True,
    default=False,
    help="Report what would be copied without copying.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=DEFAULT_NUM_WORKERS,
    help="Maximum number of concurrent copies.",
    show_default=True,
)
@click.option(
    "--source-endpoint-url",
    default=None,
    help="Custom endpoint for an S3-compatible source.",
)
@click.option(
    "--dest-endpoint-url",
    default=None,
    help="Custom endpoint for an S3-compatible destination.",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set the logging level.",
    show_default=True,
)
def cli(**kwargs: Any) -> None:
    """
    Copy new and changed objects from one S3 bucket to another.

    Both buckets are listed under the same prefix. Source objects that are
    missing at the destination, or whose ETag differs, are copied. Objects
    only present at the destination are left untouched.

    Every option can also be set through an `AWS_S3_SYNC_<OPTION>`
    environment variable (e.g. AWS_S3_SYNC_SOURCE_BUCKET) or a config file.
    The command line wins over the environment, which wins over the file.
    """
    setup_logging(kwargs["log_level"])

    try:
        config: Config = Config(
            source=S3Config(
                bucket=kwargs["source_bucket"],
                profile=kwargs["source_profile"] or None,
                endpoint_url=kwargs["source_endpoint_url"] or None,
            ),
            destination=S3Config(
                bucket=kwargs["dest_bucket"],
                profile=kwargs["dest_profile"] or None,
                endpoint_url=kwargs["dest_endpoint_url"] or None,
            ),
            app=AppConfig(
                prefix=kwargs["prefix"],
                dry_run=kwargs["dryrun"],
                num_workers=kwargs["workers"],
            ),
        )

        summary: RunSummary = asyncio.run(main_async(config))
        logger.info(
            f"✅ Run completed: {summary.transferred} of "
            f"{summary.object_count} objects copied."
        )
    except AwsS3SyncError as e:
        logger.critical(f"A critical application error occurred: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Interrupted. Exiting.")
        sys.exit(130)
    except Exception:
        logger.critical(
            "An unexpected error caused the application to fail:", exc_info=True
        )
        sys.exit(1)


def main() -> None:
    """Console-script entry point: loads `.env` before parsing options."""
    load_dotenv()
    cli()


if __name__ == "__main__":
    main()

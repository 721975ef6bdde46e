# tests/e2e/conftest.py
"""
Pytest configuration and fixtures for the aws-s3-sync end-to-end tests.

This module sets up the testing environment, including:
- Spinning up Docker containers for source and destination S3 services (MinIO).
- Providing fixtures for S3 services endpoints and credentials.
- Creating and cleaning up isolated S3 buckets for each test function.
"""

import uuid
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, Dict

import boto3
import pytest
import pytest_asyncio
import requests
from aiobotocore.session import AioSession, get_session
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from requests.exceptions import ConnectionError

from aws_s3_sync.config import AppConfig, Config, S3Config

# --- Constants ---
S3_ACCESS_KEY: str = "minio-key"
S3_SECRET_KEY: str = "minio-secret"
S3_REGION: str = "us-east-1"


# --- Docker Fixtures ---
@pytest.fixture(scope="session")
def docker_compose_file(pytestconfig: pytest.Config) -> str:
    """
    Locate the docker-compose.yml file for the test suite.

    Args:
        pytestconfig (pytest.Config): The pytest configuration objects.

    Returns:
        str: The absolute path to the docker-compose.yml file.
    """
    return str(Path(pytestconfig.rootdir) / "tests" / "docker-compose.yml")


@pytest.fixture(scope="session")
def docker_compose_project_name() -> str:
    """
    Define a unique, static project name for the Docker stack.

    Returns:
        str: A unique name for the docker-compose project.
    """
    return "aws-s3-sync-tests"


def _is_s3_responsive(url: str) -> bool:
    """
    Check if the MinIO health endpoint is responsive.

    Args:
        url (str): The base URL of the MinIO API.

    Returns:
        bool: True if the service is responsive, False otherwise.
    """
    try:
        response: requests.Response = requests.get(f"{url}/minio/health/live")
        return response.status_code == 200
    except ConnectionError:
        return False


def _s3_service(docker_ip: str, docker_services: Any, name: str) -> Dict[str, Any]:
    port: int = docker_services.port_for(name, 9000)
    api_url: str = f"http://{docker_ip}:{port}"
    docker_services.wait_until_responsive(
        timeout=30.0, pause=0.1, check=lambda: _is_s3_responsive(api_url)
    )
    return {
        "endpoint_url": api_url,
        "aws_access_key_id": S3_ACCESS_KEY,
        "aws_secret_access_key": S3_SECRET_KEY,
        "region_name": S3_REGION,
    }


@pytest.fixture(scope="session")
def source_s3_service(docker_ip: str, docker_services: Any) -> Dict[str, Any]:
    """
    Ensure the source S3 service is running and return its connection details.

    Args:
        docker_ip (str): The IP address of the Docker host, provided by pytest-docker.
        docker_services (Any): The pytest-docker services fixture.

    Returns:
        Dict[str, Any]: Connection details for the source S3 service.
    """
    return _s3_service(docker_ip, docker_services, "minio-source")


@pytest.fixture(scope="session")
def dest_s3_service(docker_ip: str, docker_services: Any) -> Dict[str, Any]:
    """
    Ensure the destination S3 service is running and return its connection details.

    Args:
        docker_ip (str): The IP address of the Docker host, provided by pytest-docker.
        docker_services (Any): The pytest-docker services fixture.

    Returns:
        Dict[str, Any]: Connection details for the destination S3 service.
    """
    return _s3_service(docker_ip, docker_services, "minio-destination")


# --- Application Fixtures ---
@pytest_asyncio.fixture(scope="function")
async def s3_buckets(
    source_s3_service: Dict[str, Any],
    dest_s3_service: Dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[Dict[str, str], None]:
    """
    Create unique, isolated S3 buckets for a single test function.

    The MinIO credentials are exported through the standard AWS environment
    variables, so the default (profile-less) credential chain picks them up.

    Args:
        source_s3_service (Dict[str, Any]): Connection details for the source S3.
        dest_s3_service (Dict[str, Any]): Connection details for the destination S3.
        monkeypatch (pytest.MonkeyPatch): Used to set the AWS environment.

    Yield:
        AsyncGenerator[Dict[str, str], None]: A dictionary with the names of
            the created source and destination buckets.
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", S3_ACCESS_KEY)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", S3_SECRET_KEY)
    monkeypatch.setenv("AWS_DEFAULT_REGION", S3_REGION)
    monkeypatch.delenv("AWS_PROFILE", raising=False)

    session: AioSession = get_session()
    bucket_name_suffix: str = f"test-bucket-{uuid.uuid4()}"
    source_bucket: str = f"source-{bucket_name_suffix}"
    dest_bucket: str = f"dest-{bucket_name_suffix}"

    async with (
        session.create_client("s3", **source_s3_service) as s3_source,
        session.create_client("s3", **dest_s3_service) as s3_dest,
    ):
        await s3_source.create_bucket(Bucket=source_bucket)
        await s3_dest.create_bucket(Bucket=dest_bucket)

    yield {"source": source_bucket, "destination": dest_bucket}

    # Cleanup: boto3 is simpler for synchronous, recursive delete
    boto_config: BotoConfig = BotoConfig(
        retries={"max_attempts": 0, "mode": "standard"}
    )
    for service, bucket in [
        (source_s3_service, source_bucket),
        (dest_s3_service, dest_bucket),
    ]:
        resource = boto3.resource("s3", **service, config=boto_config)
        try:
            bucket_obj = resource.Bucket(bucket)
            bucket_obj.objects.all().delete()
            bucket_obj.delete()
        except ClientError as e:
            if e.response["Error"]["Code"] != "NoSuchBucket":
                raise


@pytest.fixture(scope="function")
def make_e2e_config(
    s3_buckets: Dict[str, str],
    source_s3_service: Dict[str, Any],
    dest_s3_service: Dict[str, Any],
) -> Callable[..., Config]:
    """
    Provide a factory for `Config` objects pointing at the MinIO buckets.

    Returns:
        Callable[..., Config]: Accepts `AppConfig` keyword arguments.
    """

    def _creator(**app_kwargs: Any) -> Config:
        return Config(
            source=S3Config(
                bucket=s3_buckets["source"],
                endpoint_url=source_s3_service["endpoint_url"],
            ),
            destination=S3Config(
                bucket=s3_buckets["destination"],
                endpoint_url=dest_s3_service["endpoint_url"],
            ),
            app=AppConfig(**app_kwargs),
        )

    return _creator

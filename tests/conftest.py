from __future__ import annotations

import os
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from s3_gateway import Endpoint, EndpointTable, S3Gateway
from s3_gateway.backend import ObjectStore

from helpers import BUCKET

if TYPE_CHECKING:
    from collections.abc import Generator

    from botocore.client import BaseClient

pytest_plugins = ["pytest_databases.docker.minio"]


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def endpoints() -> EndpointTable:
    return EndpointTable(
        [
            Endpoint("/media/", "/app/files"),
            Endpoint("/media/images/", "/app/pictures/"),
        ]
    )


@pytest.fixture
def gateway(s3_client: MagicMock, endpoints: EndpointTable) -> S3Gateway:
    return S3Gateway(endpoints=endpoints, store=ObjectStore(s3_client, BUCKET))


@pytest.fixture
def clean_env() -> Generator[None]:
    """Drop gateway related variables for the duration of a test."""
    original = os.environ.copy()
    for key in list(os.environ):
        if key.startswith(("S3PROXY_", "AWS_")):
            os.environ.pop(key)
    yield
    os.environ.clear()
    os.environ.update(original)


def _docker_available() -> bool:
    try:
        import docker
        from docker.errors import DockerException

        try:
            docker.from_env().ping()
        except (DockerException, OSError):
            return False
    except ImportError:
        return False
    return True


@pytest.fixture(scope="session")
def minio(request: pytest.FixtureRequest):
    """MinIO container, skipping the test when Docker is not reachable."""
    if not _docker_available():
        pytest.skip("docker is not available")
    return request.getfixturevalue("minio_service")


def _s3_client_from_service(minio_service) -> BaseClient:
    import boto3
    from botocore.config import Config

    scheme = "https" if minio_service.secure else "http"
    endpoint = f"{scheme}://{minio_service.endpoint}"
    return boto3.client(
        "s3",
        endpoint_url=endpoint,
        aws_access_key_id=minio_service.access_key,
        aws_secret_access_key=minio_service.secret_key,
        region_name="us-east-1",
        config=Config(s3={"addressing_style": "path"}),
    )


def _bucket_exists(client, bucket: str) -> bool:
    from botocore.exceptions import ClientError

    try:
        client.head_bucket(Bucket=bucket)
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "")
        if code in {"404", "NoSuchBucket", "NotFound"}:
            return False
        raise
    else:
        return True


@pytest.fixture
def minio_s3_client(minio) -> BaseClient:
    """boto3 client talking to the MinIO container."""
    client = _s3_client_from_service(minio)
    if not _bucket_exists(client, BUCKET):
        client.create_bucket(Bucket=BUCKET)
    return client


@pytest.fixture
def minio_env(minio, clean_env) -> dict[str, str]:
    """Environment pointing the gateway at the MinIO container."""
    scheme = "https" if minio.secure else "http"
    env_vars = {
        "S3PROXY_BUCKET__ENDPOINT": f"{scheme}://{minio.endpoint}",
        "S3PROXY_BUCKET__REGION": "us-east-1",
        "S3PROXY_BUCKET__BUCKET_NAME": BUCKET,
        "AWS_S3_ACCESS_KEY_ID": minio.access_key,
        "AWS_S3_SECRET_KEY": minio.secret_key,
        "S3PROXY_ENDPOINTS": (
            '[{"path": "/media/", "bucket_path": "/app/files"},'
            ' {"path": "/media/images/", "bucket_path": "/app/pictures"}]'
        ),
        "S3PROXY_CONFIG": "/nonexistent/s3-proxy.yaml",
    }
    os.environ.update(env_vars)
    return env_vars

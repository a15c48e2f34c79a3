from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, assert_never

from anyio import to_thread
from boto3.session import Session
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .settings import ConfigError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping

    from botocore.client import BaseClient
    from botocore.response import StreamingBody

    from .ranges import RangeSpec
    from .settings import BucketSettings

LOG = logging.getLogger("s3_gateway.backend")

CHUNK_SIZE = 1024 * 64


async def _run_sync(func: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Any:
    return await to_thread.run_sync(partial(func, *args, **kwargs))


@dataclass(frozen=True)
class FullRead:
    pass


@dataclass(frozen=True)
class RangedRead:
    range: RangeSpec


@dataclass(frozen=True)
class MetadataOnly:
    pass


BackendCommand = FullRead | RangedRead | MetadataOnly


class BackendError(Exception):
    """Raised when the object store could not serve a command."""


class BackendHTTPError(BackendError):
    def __init__(self, status: int, detail: str):
        super().__init__(detail)
        self.status = status

    @classmethod
    def from_client_error(cls, error: ClientError) -> BackendHTTPError:
        status = int(
            error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 500)
        )
        return cls(status, str(error))


class BackendTransportError(BackendError):
    pass


@dataclass
class BackendResponse:
    status: int
    headers: Mapping[str, str]
    content_length: int | None = None
    body: AsyncIterator[bytes] | None = None


def _iter_body(streaming_body: StreamingBody) -> AsyncIterator[bytes]:
    async def iterator() -> AsyncIterator[bytes]:
        try:
            while True:
                try:
                    chunk = await _run_sync(streaming_body.read, CHUNK_SIZE)
                except BotoCoreError as error:
                    LOG.warning("object stream interrupted: %s", error)
                    raise BackendTransportError(str(error)) from error
                if not chunk:
                    break
                yield chunk
        finally:
            await _run_sync(streaming_body.close)

    return iterator()


class ObjectStore:
    """Read-only access to a single bucket through a boto3 S3 client."""

    def __init__(self, client: BaseClient, bucket_name: str):
        self._client = client
        self._bucket_name = bucket_name

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @classmethod
    def from_settings(cls, settings: BucketSettings) -> ObjectStore:
        """Build the S3 client for the configured bucket.

        Raises:
            ConfigError: if no custom endpoint is set and the region is not a
                known AWS region.
        """
        access_key, secret_key = settings.credentials()
        session = Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=settings.region,
        )
        if settings.endpoint is None and settings.region not in set(
            session.get_available_regions("s3")
        ):
            msg = "Couldn't parse region"
            raise ConfigError(msg)

        client = session.client(
            "s3",
            endpoint_url=settings.endpoint,
            config=BotoConfig(
                signature_version="s3v4",
                retries={"total_max_attempts": 1, "mode": "standard"},
                s3={"addressing_style": settings.addressing_style},
            ),
        )
        return cls(client, settings.bucket_name)

    def close(self) -> None:
        self._client.close()

    async def execute(self, key: str, command: BackendCommand) -> BackendResponse:
        """Run ``command`` against ``key`` and return the response.

        The body of a read is returned unconsumed and must be iterated by the
        caller.

        Raises:
            BackendHTTPError: the object store answered with an error status.
            BackendTransportError: the object store could not be reached.
        """
        kwargs: dict[str, Any] = {
            "Bucket": self._bucket_name,
            "Key": key.lstrip("/"),
        }
        try:
            if isinstance(command, MetadataOnly):
                result = await _run_sync(self._client.head_object, **kwargs)
            elif isinstance(command, RangedRead):
                kwargs["Range"] = command.range.header_value()
                result = await _run_sync(self._client.get_object, **kwargs)
            elif isinstance(command, FullRead):
                result = await _run_sync(self._client.get_object, **kwargs)
            else:
                assert_never(command)
        except ClientError as error:
            raise BackendHTTPError.from_client_error(error) from error
        except BotoCoreError as error:
            raise BackendTransportError(str(error)) from error

        metadata = result.get("ResponseMetadata", {})
        body = result.get("Body")
        return BackendResponse(
            status=int(metadata.get("HTTPStatusCode", 200)),
            headers=metadata.get("HTTPHeaders", {}),
            content_length=result.get("ContentLength"),
            body=_iter_body(body) if body is not None else None,
        )

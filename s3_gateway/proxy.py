from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from litestar.enums import MediaType
from litestar.response import Response, Stream

from .backend import (
    BackendError,
    BackendHTTPError,
    BackendResponse,
    FullRead,
    MetadataOnly,
    ObjectStore,
    RangedRead,
)
from .endpoints import EndpointTable
from .headers import object_headers
from .ranges import parse_range_header, translate_range
from .settings import GatewaySettings, load_settings

if TYPE_CHECKING:
    from litestar import Request

    from .backend import BackendCommand

LOG = logging.getLogger("s3_gateway.proxy")

NOT_FOUND_MESSAGE = "File not found"
# Used for GET bodies the object store sent without a Content-Type.
DEFAULT_MEDIA_TYPE = "application/octet-stream"


def not_found_response(*, head: bool = False) -> Response:
    return Response(
        content=b"" if head else NOT_FOUND_MESSAGE,
        status_code=404,
        media_type=MediaType.TEXT,
    )


def upstream_error_response(error: BackendError, *, head: bool = False) -> Response:
    return Response(
        content=b"" if head else f"Upstream error: {error}",
        status_code=503,
        media_type=MediaType.TEXT,
    )


def select_command(method: str, range_header: str | None) -> BackendCommand:
    """Pick the object store command for an inbound GET or HEAD request."""
    if method == "HEAD":
        return MetadataOnly()
    ranges = parse_range_header(range_header)
    if ranges is not None:
        spec = translate_range(ranges)
        if spec is not None:
            return RangedRead(spec)
    return FullRead()


class S3Gateway:
    def __init__(self, endpoints: EndpointTable, store: ObjectStore):
        self._endpoints = endpoints
        self._store = store

    @classmethod
    def from_settings(cls, settings: GatewaySettings) -> S3Gateway:
        return cls(
            endpoints=EndpointTable.from_settings(settings.endpoints),
            store=ObjectStore.from_settings(settings.bucket),
        )

    @classmethod
    def from_env(cls) -> S3Gateway:
        """Create a gateway from the environment and the configuration file."""
        return cls.from_settings(load_settings())

    async def startup(self) -> None:
        LOG.info(
            "S3 gateway ready (bucket=%s, endpoints=%d)",
            self._store.bucket_name,
            len(self._endpoints),
        )

    async def shutdown(self) -> None:
        self._store.close()

    async def handle(self, request: Request, path: str) -> Response:
        LOG.info("%s %s", request.method, path)
        head = request.method == "HEAD"
        key = self._endpoints.resolve(path)
        if key is None:
            return not_found_response(head=head)

        command = select_command(request.method, request.headers.get("range"))
        LOG.debug("issuing %s for s3://%s%s", command, self._store.bucket_name, key)

        try:
            result = await self._store.execute(key, command)
        except BackendHTTPError as error:
            if error.status == 404:
                LOG.debug("object %s not found in bucket", key)
                return not_found_response(head=head)
            LOG.warning("upstream error for %s: %s", key, error)
            return upstream_error_response(error, head=head)
        except BackendError as error:
            LOG.warning("upstream error for %s: %s", key, error)
            return upstream_error_response(error, head=head)

        return self._to_response(result)

    def _to_response(self, result: BackendResponse) -> Response:
        headers = object_headers(result)
        media_type = headers.get("Content-Type")
        if result.body is None:
            return Response(
                content=b"",
                headers=headers,
                media_type=media_type,
                status_code=result.status,
            )
        return Stream(
            content=result.body,
            headers=headers,
            media_type=media_type or DEFAULT_MEDIA_TYPE,
            status_code=result.status,
        )

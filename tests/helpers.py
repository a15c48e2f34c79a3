from __future__ import annotations

import io
from typing import Any, cast

from botocore.response import StreamingBody
from litestar import Request
from litestar.types import HTTPScope

BUCKET = "gateway-test"


class ZeroStream(io.RawIOBase):
    """Raw stream producing ``size`` zero bytes without holding them."""

    def __init__(self, size: int):
        self._remaining = size

    def readable(self) -> bool:
        return True

    def read(self, amt: int | None = -1) -> bytes:
        if amt is None or amt < 0:
            amt = self._remaining
        size = min(amt, self._remaining)
        self._remaining -= size
        return bytes(size)


def object_result(
    data: bytes | None,
    *,
    status: int = 200,
    headers: dict[str, str] | None = None,
    content_length: int | None = None,
) -> dict[str, Any]:
    """Shape a boto3 ``get_object``/``head_object`` result."""
    if content_length is None and data is not None:
        content_length = len(data)
    result: dict[str, Any] = {
        "ResponseMetadata": {
            "HTTPStatusCode": status,
            "HTTPHeaders": headers or {},
        },
        "ContentLength": content_length,
    }
    if data is not None:
        result["Body"] = StreamingBody(io.BytesIO(data), len(data))
    return result


def make_request(
    method: str, path: str, headers: dict[str, str] | None = None
) -> Request:
    scope = cast(
        HTTPScope,
        {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": b"",
            "headers": [
                (key.lower().encode("latin-1"), value.encode("latin-1"))
                for key, value in (headers or {}).items()
            ],
        },
    )

    async def receive():
        return {"type": "http.request", "body": b""}

    return Request(scope=scope, receive=receive)


async def read_body(response) -> bytes:
    body_chunks = []
    async for chunk in response.iterator:
        body_chunks.append(chunk)
    return b"".join(body_chunks)

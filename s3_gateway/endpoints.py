from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .settings import EndpointSettings

LOG = logging.getLogger("s3_gateway.endpoints")


@dataclass(frozen=True)
class Endpoint:
    """Maps a public URL path prefix onto a prefix inside the bucket."""

    public_prefix: str
    backend_prefix: str

    def __post_init__(self) -> None:
        if not self.public_prefix or not self.backend_prefix:
            msg = "endpoint prefixes must not be empty"
            raise ValueError(msg)

    def key_for(self, request_path: str) -> str | None:
        if not request_path.startswith(self.public_prefix):
            return None
        remainder = request_path[len(self.public_prefix) :]
        return f"{self.backend_prefix.rstrip('/')}/{remainder.lstrip('/')}"


class EndpointTable:
    """Endpoints ordered so the longest public prefix is tried first.

    Endpoints with equally long prefixes keep their registration order, so the
    first one registered wins.
    """

    def __init__(self, endpoints: Iterable[Endpoint] = ()):
        self._endpoints = tuple(
            sorted(
                endpoints,
                key=lambda endpoint: len(endpoint.public_prefix),
                reverse=True,
            )
        )

    @classmethod
    def from_settings(cls, endpoints: Iterable[EndpointSettings]) -> EndpointTable:
        return cls(Endpoint(item.path, item.bucket_path) for item in endpoints)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def resolve(self, request_path: str) -> str | None:
        """Return the backend key for ``request_path`` or ``None`` if unmapped."""
        for endpoint in self._endpoints:
            key = endpoint.key_for(request_path)
            if key is not None:
                LOG.debug(
                    "path %s matched endpoint %s -> %s", request_path, endpoint, key
                )
                return key
        LOG.debug("no endpoint for path %s", request_path)
        return None

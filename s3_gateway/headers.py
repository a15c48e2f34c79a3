from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, MutableMapping

    from .backend import BackendResponse

FORWARDED_HEADERS = ("Content-Type", "Content-Range", "ETag")


def project_headers(
    destination: MutableMapping[str, str],
    source: Mapping[str, str],
    allow_list: Iterable[str],
) -> None:
    """Copy the allow-listed headers present in ``source`` verbatim."""
    lowered = {key.lower(): value for key, value in source.items()}
    for header in allow_list:
        value = lowered.get(header.lower())
        if value is None:
            continue
        destination[header] = value


def object_headers(response: BackendResponse) -> dict[str, str]:
    headers: dict[str, str] = {}
    if response.content_length is not None:
        headers["Content-Length"] = str(response.content_length)
    project_headers(headers, response.headers, FORWARDED_HEADERS)
    return headers

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

LOG = logging.getLogger("s3_gateway.ranges")


@dataclass(frozen=True)
class ByteRange:
    """One element of a ``Range`` header; ``None`` marks an unbounded side."""

    start: int | None
    end: int | None


@dataclass(frozen=True)
class RangeSpec:
    """Inclusive byte range as understood by the object store."""

    start: int
    end: int | None = None

    def header_value(self) -> str:
        end = "" if self.end is None else str(self.end)
        return f"bytes={self.start}-{end}"


def _parse_bound(value: str) -> int | None:
    value = value.strip()
    if not value:
        return None
    if not (value.isascii() and value.isdigit()):
        raise ValueError(value)
    return int(value)


def parse_range_header(range_header: str | None) -> list[ByteRange] | None:
    """Parse a ``Range`` header into its byte ranges.

    Returns ``None`` when the header is absent or cannot be understood, in
    which case it must be ignored.
    """
    if not range_header:
        return None

    try:
        unit, range_set = range_header.split("=", 1)
        if unit.strip().lower() != "bytes":
            return None

        ranges: list[ByteRange] = []
        for item in range_set.split(","):
            item = item.strip()
            if not item:
                continue
            if "-" not in item:
                return None
            start_str, end_str = item.split("-", 1)
            start = _parse_bound(start_str)
            end = _parse_bound(end_str)
            if start is not None and end is not None and start > end:
                return None
            ranges.append(ByteRange(start=start, end=end))
    except ValueError:
        LOG.debug("ignoring malformed range header %r", range_header)
        return None
    else:
        return ranges


def translate_range(ranges: Sequence[ByteRange]) -> RangeSpec | None:
    """Convert a parsed range set into a single object store range.

    Only a single range is supported. Zero or several ranges, as well as
    suffix ranges (``bytes=-N``), yield ``None`` so that the caller falls back
    to reading the whole object.
    """
    if len(ranges) != 1:
        if ranges:
            LOG.debug(
                "multiple ranges requested (%d), reading full object", len(ranges)
            )
        return None

    (byte_range,) = ranges
    assert byte_range.start is None or byte_range.start >= 0
    assert byte_range.end is None or byte_range.end >= 0

    if byte_range.start is None and byte_range.end is not None:
        LOG.debug(
            "suffix range -%d not supported, reading full object", byte_range.end
        )
        return None

    start = 0 if byte_range.start is None else byte_range.start
    return RangeSpec(start=start, end=byte_range.end)

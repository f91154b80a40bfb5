"""Chrome bookmark timestamps.

Chrome stores ``date_added`` as a decimal string counting from
1601-01-01T00:00:00Z (the Windows FILETIME epoch). Although the epoch is the
FILETIME one, Chrome writes the count in microseconds, and that is how the
value is read here.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from .errors import MalformedTimestamp

CHROME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

# Largest step added to the epoch at once; the count is accumulated in chunks.
_CHUNK_US = 10_000_000_000_000

_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")


def parse_ticks(value: str) -> int:
    if not isinstance(value, str) or not _DECIMAL.fullmatch(value):
        raise MalformedTimestamp(value)
    n = int(value)
    if n < 0:
        raise MalformedTimestamp(value, "negative")
    if n > _INT64_MAX:
        raise MalformedTimestamp(value, "out of 64-bit range")
    return n


def chrome_time_to_datetime(value: str) -> datetime:
    """Convert a Chrome ``date_added`` string into an aware UTC datetime."""
    n = parse_ticks(value)
    chunks, remainder = divmod(n, _CHUNK_US)
    t = CHROME_EPOCH
    step = timedelta(microseconds=_CHUNK_US)
    try:
        for _ in range(chunks):
            t = t + step
        return t + timedelta(microseconds=remainder)
    except OverflowError:
        raise MalformedTimestamp(value, "beyond the representable date range") from None

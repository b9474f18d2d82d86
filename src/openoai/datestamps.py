# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openoai-python/LICENSE
# ==============================================================================

"""OAI datestamp parsing and formatting.

OAI-PMH 2.0 uses two UTC granularities: ``YYYY-MM-DD`` and
``YYYY-MM-DDThh:mm:ssZ``. Anything else, including impossible calendar dates,
is rejected.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
import re
from typing import Final, Union


class Granularity(str, Enum):
    DAY = "YYYY-MM-DD"
    SECONDS = "YYYY-MM-DDThh:mm:ssZ"


_PATTERNS: Final[tuple[tuple[re.Pattern[str], str, Granularity], ...]] = (
    (re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}Z"), "%Y-%m-%dT%H:%M:%SZ", Granularity.SECONDS),
    (re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}"), "%Y-%m-%d", Granularity.DAY),
)

DATESTAMP_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%SZ"

Timestamp = Union[datetime, date, int, float]


def parse_datestamp(value: str) -> tuple[datetime, Granularity]:
    """Parse an OAI datestamp into an aware UTC datetime and its granularity.

    Raises:
        ValueError: If *value* is not a valid datestamp at either granularity.
    """
    for pattern, fmt, granularity in _PATTERNS:
        if pattern.fullmatch(value):
            parsed = datetime.strptime(value, fmt)
            return parsed.replace(tzinfo=timezone.utc), granularity
    raise ValueError(f"Not an OAI datestamp: {value!r}")


def is_valid_datestamp(value: str) -> bool:
    try:
        parse_datestamp(value)
    except ValueError:
        return False
    return True


def to_utc(value: Timestamp) -> datetime:
    """Normalize a record timestamp to an aware UTC datetime.

    Naive datetimes are taken to already be in UTC; numbers are POSIX seconds.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")


def format_datestamp(value: Timestamp) -> str:
    return to_utc(value).strftime(DATESTAMP_FORMAT)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "DATESTAMP_FORMAT",
    "Granularity",
    "Timestamp",
    "format_datestamp",
    "is_valid_datestamp",
    "parse_datestamp",
    "to_utc",
    "utcnow",
]

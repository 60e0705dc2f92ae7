"""Coercion of the many date shapes found in Suwatte backups to epoch milliseconds."""

from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

import pytz
from dateutil.parser import parse as dateutil_parse

Clock = Callable[[], datetime]
InvalidDateCallback = Callable[[Any], None]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Largest value a signed 64 bit property list integer can hold.
MAX_TIMESTAMP_MS = (1 << 63) - 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return pytz.utc.localize(value)
    return value.astimezone(pytz.utc)


def datetime_to_ms(value: datetime) -> int:
    """Return ``value`` as whole milliseconds since the Unix epoch."""

    delta = _as_utc(value) - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def now_ms(clock: Optional[Clock] = None) -> int:
    return datetime_to_ms((clock or utc_now)())


def _parse_string(value: str) -> Optional[int]:
    cleaned = value.strip()
    if not cleaned:
        return None
    if cleaned.isascii() and cleaned.isdigit():
        return int(cleaned)
    try:
        parsed = dateutil_parse(cleaned)
    except (TypeError, ValueError, OverflowError):
        return None
    return datetime_to_ms(parsed)


def normalize(
    value: Any,
    *,
    now: Optional[Clock] = None,
    on_invalid: Optional[InvalidDateCallback] = None,
) -> int:
    """Convert a date-like ``value`` into a non-negative epoch-millisecond integer.

    Accepted inputs are ISO-8601 (or otherwise ``dateutil`` parseable) strings,
    ``datetime``/``date`` objects, numbers that are already epoch milliseconds
    and ``None``.  Missing values resolve to the current time.  Values that
    cannot be interpreted also resolve to the current time, but ``on_invalid``
    is called with the original value so the caller can report it.  Numbers too
    large for a 64 bit integer are treated the same way, and negative results
    are clamped to zero.  The function never raises.
    """

    if value is None:
        return now_ms(now)

    result: Optional[int]
    if isinstance(value, bool):
        result = None
    elif isinstance(value, datetime):
        result = datetime_to_ms(value)
    elif isinstance(value, date):
        result = datetime_to_ms(datetime(value.year, value.month, value.day))
    elif isinstance(value, (int, float)):
        result = None if isinstance(value, float) and not math.isfinite(value) else int(value)
    elif isinstance(value, str):
        result = _parse_string(value)
    else:
        result = None

    if result is None:
        if on_invalid is not None:
            on_invalid(value)
        return now_ms(now)

    if result > MAX_TIMESTAMP_MS:
        if on_invalid is not None:
            on_invalid(value)
        return now_ms(now)

    if result < 0:
        if on_invalid is not None:
            on_invalid(value)
        return 0
    return result

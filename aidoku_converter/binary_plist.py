"""Binary property list output for Aidoku backups.

Encoding is done by :func:`plistlib.dumps` with ``FMT_BINARY``.  Before the
tree reaches it, :func:`encode` copies it once so that:

* ``datetime`` values go through the caller's date formatter and are stored as
  naive UTC, which is what ``plistlib`` writes and reads back;
* ``None`` and unsupported values raise :class:`TypeError` instead of being
  written as a binary ``null``;
* containers that contain themselves raise :class:`ValueError`.

Integers outside the signed/unsigned 64 bit range raise :class:`OverflowError`
from ``plistlib`` itself.
"""

from __future__ import annotations

import plistlib
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Set

__all__ = ["DateFormatter", "encode", "truncate_to_seconds"]

DateFormatter = Callable[[datetime], datetime]


def truncate_to_seconds(value: datetime) -> datetime:
    """Default date formatter: drop sub-second precision."""

    return value.replace(microsecond=0)


def encode(
    value: Any,
    *,
    sort_keys: bool = False,
    date_formatter: Optional[DateFormatter] = truncate_to_seconds,
) -> bytes:
    """Return ``value`` encoded as a binary property list.

    Dictionary members keep their insertion order unless ``sort_keys`` is set.
    ``date_formatter`` applies to this call only.
    """

    prepared = _prepare(value, date_formatter, set())
    return plistlib.dumps(prepared, fmt=plistlib.FMT_BINARY, sort_keys=sort_keys)


def _prepare(value: Any, date_formatter: Optional[DateFormatter], active: Set[int]) -> Any:
    if value is None:
        raise TypeError("Property lists cannot contain None")
    if isinstance(value, (bool, int, float, str, bytes)):
        return value
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, datetime):
        return _format_date(value, date_formatter)

    if isinstance(value, dict):
        _enter(value, active)
        try:
            prepared = {}
            for key, item in value.items():
                if not isinstance(key, str):
                    raise TypeError(f"Property list keys must be strings, got {type(key).__name__}")
                prepared[key] = _prepare(item, date_formatter, active)
            return prepared
        finally:
            active.discard(id(value))

    if isinstance(value, (list, tuple)):
        _enter(value, active)
        try:
            return [_prepare(item, date_formatter, active) for item in value]
        finally:
            active.discard(id(value))

    raise TypeError(f"Unsupported property list type: {type(value).__name__}")


def _enter(container: Any, active: Set[int]) -> None:
    if id(container) in active:
        raise ValueError("Property list contains a reference cycle")
    active.add(id(container))


def _format_date(value: datetime, date_formatter: Optional[DateFormatter]) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if date_formatter is not None:
        value = date_formatter(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

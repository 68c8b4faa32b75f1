"""
UTC ISO-8601 instants, as used for data set ids and manifest timestamps.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

_INSTANT_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?Z$")


def parse_instant(value: str) -> datetime | None:
    """
    Parse a UTC ISO-8601 instant such as ``2024-01-01T00:00:00Z``.

    Fractions beyond microseconds are truncated.

    Returns:
        An aware UTC datetime, or None when the text is not an instant
    """
    match = _INSTANT_PATTERN.match(value)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction = match.groups()
    micros = int((fraction or "0").ljust(9, "0")[:6])
    try:
        return datetime(
            int(year), int(month), int(day), int(hour), int(minute), int(second), micros, tzinfo=UTC
        )
    except ValueError:
        return None


def format_instant(timestamp: datetime) -> str:
    """
    Format a datetime the way ``DateTimeFormatter.ISO_INSTANT`` would.

    Seconds are always written; the fraction only when non-zero, in groups of
    three digits; the zone is always ``Z``.
    """
    ts = timestamp.astimezone(UTC)
    text = ts.strftime("%Y-%m-%dT%H:%M:%S")
    if ts.microsecond:
        if ts.microsecond % 1000 == 0:
            text += f".{ts.microsecond // 1000:03d}"
        else:
            text += f".{ts.microsecond:06d}"
    return text + "Z"


def parse_canonical_instant(value: str) -> datetime | None:
    """
    Parse an instant only if ``format_instant`` writes it back unchanged.

    Data set keys are rebuilt from the parsed timestamp, so an id such as
    ``2024-01-01T00:00:00.5Z`` would point at ``...00.500Z/`` instead of the
    prefix actually holding its files.
    """
    timestamp = parse_instant(value)
    if timestamp is None or format_instant(timestamp) != value:
        return None
    return timestamp

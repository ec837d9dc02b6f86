"""
STAC API Temporal Filter

Parses the `datetime` search parameter: a single RFC 3339 instant or an
interval `start/end` where either end may be open (`..` or empty).

The normalized (uppercased) string is returned as-is; the backend re-parses
it. Parsing here only validates.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from .exceptions import STACValidationError


OPEN_END = ".."

RFC3339_REGEX = re.compile(
    r"^(\d\d\d\d)-(\d\d)-(\d\d)T(\d\d):(\d\d):(\d\d)([.]\d+)?"
    r"(Z|([-+])(\d\d):(\d\d))$",
    re.ASCII
)


def rfc3339_to_datetime(value: str) -> datetime:
    """
    Parse a strict RFC 3339 timestamp.

    Args:
        value: Uppercased timestamp, e.g. 2020-01-01T00:00:00Z

    Returns:
        Timezone-aware datetime

    Raises:
        STACValidationError: pattern mismatch, or the pattern matches but the
            value is not a real calendar date/time (e.g. day 32)
    """
    match = RFC3339_REGEX.match(value)
    if not match:
        raise STACValidationError(
            "datetime value is invalid, does not match RFC3339 format"
        )

    year, month, day, hour, minute, second = (int(g) for g in match.group(1, 2, 3, 4, 5, 6))
    fraction = match.group(7)
    microsecond = int(fraction[1:7].ljust(6, "0")) if fraction else 0

    try:
        if match.group(8) == "Z":
            tz = timezone.utc
        else:
            offset = timedelta(hours=int(match.group(10)), minutes=int(match.group(11)))
            tz = timezone(-offset if match.group(9) == "-" else offset)
        return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=tz)
    except ValueError as e:
        raise STACValidationError(f"datetime value is invalid, {e}")


def _is_open(end: Optional[str]) -> bool:
    return not end or end == OPEN_END


def extract_datetime(value: Optional[str]) -> Optional[str]:
    """
    Validate a datetime instant or interval.

    Args:
        value: Raw `datetime` parameter

    Returns:
        Uppercased input, or None when nothing was supplied

    Raises:
        STACValidationError: more than one `/`, both ends open, malformed
            timestamps, or an interval that ends before it starts
    """
    if not value:
        return None

    if not isinstance(value, str):
        raise STACValidationError("datetime value is invalid, expected a string")

    normalized = value.upper()
    parts = normalized.split("/")
    if len(parts) > 2:
        raise STACValidationError(
            "datetime value is invalid, too many forward slashes for an interval"
        )

    start = parts[0]
    end = parts[1] if len(parts) == 2 else None

    if _is_open(start) and _is_open(end):
        raise STACValidationError(
            "datetime value is invalid, at least one end of the interval must be closed"
        )

    start_dt = None if _is_open(start) else rfc3339_to_datetime(start)
    end_dt = None if _is_open(end) else rfc3339_to_datetime(end)

    if start_dt and end_dt and end_dt < start_dt:
        raise STACValidationError(
            "datetime value is invalid, start datetime must be before end datetime with interval"
        )

    return normalized

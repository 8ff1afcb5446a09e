"""
Lenient value parsers for station telemetry.

Upstream feeds send numbers as floats, ints or locale strings ("12,5") and
timestamps in a handful of ISO-like shapes. Anything that cannot be read is
returned as None so a noisy sample never aborts an aggregation.
"""

import math
from datetime import date, datetime, time
from typing import Any, Optional


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a numeric sensor value.

    Args:
        value: Raw value (float, int, numeric string, decimal-comma string)

    Returns:
        Float value, or None for missing, empty, non-finite or unparseable input

    Example:
        >>> parse_number("12,5")
        12.5
        >>> parse_number("")
        None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        clean = value.strip().replace(",", ".", 1)
        if not clean:
            return None
        try:
            number = float(clean)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a reading timestamp.

    Accepts datetime objects, dates (taken as local midnight), ISO-8601
    strings with a trailing "Z" or an explicit offset, and "YYYY-MM-DD HH:MM:SS"
    strings that use a space instead of "T".

    Returns:
        Parsed datetime (naive when the input carried no offset), or None
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if "T" not in text and " " in text:
        text = text.replace(" ", "T", 1)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None

"""
Temporal Utility Functions.

This module provides utility functions for working with timestamps and day
arithmetic, particularly for recurring pattern detection.
"""

import logging
import math
from datetime import date, datetime, timezone, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a transaction timestamp leniently.

    Accepts datetime objects, date objects, ISO-8601 strings and epoch
    timestamps in milliseconds. Naive values are treated as UTC.

    Args:
        value: Raw timestamp value

    Returns:
        Timezone-aware datetime, or None if the value cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float, Decimal)):
        try:
            parsed = datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Timestamp out of range: {value}")
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_between(earlier: datetime, later: datetime) -> int:
    """
    Whole days between two timestamps, rounding partial days up.

    Args:
        earlier: First timestamp
        later: Second timestamp

    Returns:
        Absolute number of days, with any partial day counted as a full day
    """
    seconds = abs((later - earlier).total_seconds())
    return math.ceil(seconds / SECONDS_PER_DAY)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (30.5 -> 31)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def add_days(start: date, days: int) -> date:
    """Return the date a number of days after start."""
    return start + timedelta(days=days)

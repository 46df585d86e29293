"""
Upcoming charge filtering for recurring patterns.
"""

import logging
from datetime import date
from typing import List

from models.recurring_pattern import RecurringPattern, UpcomingCharge
from utils.temporal_utils import add_days

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 30


def filter_upcoming(
    patterns: List[RecurringPattern],
    today: date,
    horizon_days: int = DEFAULT_HORIZON_DAYS
) -> List[UpcomingCharge]:
    """
    Select patterns due within the next horizon_days days.

    Both ends of the window are inclusive. Overdue patterns (next due date
    before today) are not included.

    Args:
        patterns: Patterns to filter
        today: Reference date, supplied by the caller
        horizon_days: Window length in days (default 30)

    Returns:
        UpcomingCharge list sorted by next due date ascending; ties keep
        input order

    Raises:
        ValueError: If horizon_days is negative
    """
    if horizon_days < 0:
        raise ValueError(f"horizon_days must be non-negative, got {horizon_days}")

    window_end = add_days(today, horizon_days)
    due = [p for p in patterns if today <= p.next_due_date <= window_end]
    due.sort(key=lambda p: p.next_due_date)

    logger.debug(f"{len(due)} of {len(patterns)} patterns due between {today} and {window_end}")
    return [
        UpcomingCharge(pattern=p, days_until_due=(p.next_due_date - today).days)
        for p in due
    ]

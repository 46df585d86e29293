"""
Monthly equivalent normalization for recurring patterns.

Converts a recurring amount at a given cadence into an approximate monthly
figure so that charges with different cadences can be compared and summed.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Union

from models.recurring_pattern import MonthlyEquivalent, RecurrenceFrequency, RecurringPattern

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# (operation, factor) per cadence label
MONTHLY_CONVERSIONS: Dict[str, tuple] = {
    RecurrenceFrequency.YEARLY.value: ("divide", Decimal("12")),
    "annually": ("divide", Decimal("12")),
    RecurrenceFrequency.QUARTERLY.value: ("divide", Decimal("3")),
    RecurrenceFrequency.BI_WEEKLY.value: ("multiply", Decimal("2.17")),
    RecurrenceFrequency.WEEKLY.value: ("multiply", Decimal("4.33")),
    RecurrenceFrequency.DAILY.value: ("multiply", Decimal("30.42")),
}


def to_monthly_equivalent(amount: Union[Decimal, float, int, str], cadence: str) -> Decimal:
    """
    Convert an amount at a cadence to its monthly equivalent.

    Monthly, "every N days" and unknown cadences are returned unchanged.

    Args:
        amount: Recurring amount
        cadence: Cadence label, e.g. "quarterly" or "bi-weekly"

    Returns:
        Monthly amount quantized to cents, halves rounded up
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    label = cadence.lower() if cadence else ""

    conversion = MONTHLY_CONVERSIONS.get(label)
    if conversion is not None:
        operation, factor = conversion
        value = value / factor if operation == "divide" else value * factor

    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def build_monthly_equivalents(patterns: List[RecurringPattern]) -> List[MonthlyEquivalent]:
    """Project each pattern onto its monthly equivalent, preserving order."""
    return [
        MonthlyEquivalent(
            merchant_key=pattern.merchant_key,
            category=pattern.category,
            frequency_label=pattern.frequency_label,
            amount=pattern.avg_amount,
            monthly_amount=to_monthly_equivalent(pattern.avg_amount, pattern.frequency_label),
        )
        for pattern in patterns
    ]


def total_monthly_equivalent(patterns: List[RecurringPattern]) -> Decimal:
    """Sum of the monthly equivalents of all patterns."""
    total = sum(
        (item.monthly_amount for item in build_monthly_equivalents(patterns)),
        Decimal("0.00")
    )
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)

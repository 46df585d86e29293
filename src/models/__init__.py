"""
Models package for recurring pattern detection.
"""

from .transaction import (
    TransactionRecord,
    parse_transaction_records,
)

from .recurring_pattern import (
    RecurrenceFrequency,
    AmountCluster,
    RecurringPattern,
    MonthlyEquivalent,
    UpcomingCharge,
    every_n_days_label,
)

__all__ = [
    'TransactionRecord',
    'parse_transaction_records',
    'RecurrenceFrequency',
    'AmountCluster',
    'RecurringPattern',
    'MonthlyEquivalent',
    'UpcomingCharge',
    'every_n_days_label',
]

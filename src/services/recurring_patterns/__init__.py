"""
Recurring pattern detection services.

This package contains the detection pipeline, its configuration, the
read-only projections over detected patterns, and the service that ties
detection to storage.
"""

from services.recurring_patterns.config import DetectionConfig, DEFAULT_CONFIG
from services.recurring_patterns.detection_service import (
    RecurringPatternDetectionService,
    detect_recurring_patterns,
)
from services.recurring_patterns.normalization import (
    to_monthly_equivalent,
    build_monthly_equivalents,
    total_monthly_equivalent,
)
from services.recurring_patterns.upcoming import filter_upcoming, DEFAULT_HORIZON_DAYS
from services.recurring_patterns.pattern_service import RecurringPatternService

__all__ = [
    'DetectionConfig',
    'DEFAULT_CONFIG',
    'RecurringPatternDetectionService',
    'detect_recurring_patterns',
    'to_monthly_equivalent',
    'build_monthly_equivalents',
    'total_monthly_equivalent',
    'filter_upcoming',
    'DEFAULT_HORIZON_DAYS',
    'RecurringPatternService',
]

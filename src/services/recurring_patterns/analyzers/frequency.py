"""
Frequency classifier for recurring pattern detection.

Maps a mean interval to a named cadence and its base confidence.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from models.recurring_pattern import RecurrenceFrequency, every_n_days_label
from services.recurring_patterns.config import FrequencyThresholds
from utils.temporal_utils import round_half_up

logger = logging.getLogger(__name__)


@dataclass
class FrequencyClassification:
    """Result of classifying a mean interval."""
    label: str
    frequency: RecurrenceFrequency
    base_confidence: Decimal


class FrequencyClassifier:
    """
    Classifies mean intervals into cadences using inclusive day ranges.

    Intervals outside every named range are labelled "every N days", with N the
    mean interval rounded half up, and carry the fallback confidence.
    """

    def __init__(self, thresholds: Optional[FrequencyThresholds] = None):
        """
        Initialize the frequency classifier.

        Args:
            thresholds: Cadence ranges and confidences (creates default if None)
        """
        self.thresholds = thresholds or FrequencyThresholds()

    def classify(self, avg_interval_days: float) -> FrequencyClassification:
        """
        Classify a mean interval.

        Args:
            avg_interval_days: Mean interval in days

        Returns:
            FrequencyClassification with label and base confidence
        """
        for rule in self.thresholds.rules:
            if rule.matches(avg_interval_days):
                return FrequencyClassification(
                    label=rule.frequency.value,
                    frequency=rule.frequency,
                    base_confidence=rule.base_confidence,
                )

        label = every_n_days_label(round_half_up(avg_interval_days))
        logger.debug(f"Interval {avg_interval_days:.2f} matched no named cadence, using '{label}'")
        return FrequencyClassification(
            label=label,
            frequency=RecurrenceFrequency.IRREGULAR,
            base_confidence=self.thresholds.fallback_confidence,
        )

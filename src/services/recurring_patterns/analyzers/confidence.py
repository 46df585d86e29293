"""
Confidence score calculator for recurring pattern detection.

Adjusts a cadence's base confidence by sample size.
"""

from decimal import Decimal
from typing import Optional

from services.recurring_patterns.config import ConfidenceBonuses


class ConfidenceScoreCalculator:
    """
    Adds sample-size bonuses to a base confidence and clamps to [0, max].

    Bonuses are non-negative and only ever added, so for a fixed cadence the
    score never decreases as samples are added.
    """

    def __init__(self, bonuses: Optional[ConfidenceBonuses] = None):
        """
        Initialize the confidence calculator.

        Args:
            bonuses: Sample-size bonus configuration (creates default if None)
        """
        self.bonuses = bonuses or ConfidenceBonuses()

    def calculate(self, base_confidence: Decimal, sample_count: int) -> float:
        """
        Calculate the final confidence score.

        Decimal arithmetic keeps 0.7 + 0.1 equal to 0.8 exactly.

        Args:
            base_confidence: Base confidence for the detected cadence
            sample_count: Number of transactions in the pattern

        Returns:
            Confidence score between 0.0 and max_confidence
        """
        score = Decimal(str(base_confidence))
        for min_samples, bonus in self.bonuses.bonuses:
            if sample_count >= min_samples:
                score += bonus

        score = max(Decimal("0"), min(score, self.bonuses.max_confidence))
        return float(score)

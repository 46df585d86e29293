"""
Configuration classes for recurring pattern detection.

Centralizes all thresholds, tolerances and confidence values used in the
detection pipeline so the policy can be tuned without touching the pipeline.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from models.recurring_pattern import RecurrenceFrequency


class ClusteringStrategy(str, Enum):
    """How transactions are assigned to amount clusters."""
    GREEDY = "greedy"        # first-fit against the first member's amount
    CENTROID = "centroid"    # first-fit against the running mean amount


@dataclass
class AmountClusteringConfig:
    """Configuration for grouping a merchant's transactions by amount."""

    tolerance: float = 0.10
    """Maximum relative difference |amount - repr| / repr to join a cluster."""

    min_cluster_size: int = 2
    """Clusters with fewer members cannot form a pattern."""

    strategy: ClusteringStrategy = ClusteringStrategy.GREEDY
    """Assignment strategy. GREEDY is order-dependent first-fit."""

    def __post_init__(self):
        if self.tolerance < 0:
            raise ValueError(f"Amount tolerance must be non-negative, got {self.tolerance}")
        if self.min_cluster_size < 2:
            raise ValueError(f"min_cluster_size must be at least 2, got {self.min_cluster_size}")


@dataclass
class ConsistencyConfig:
    """Configuration for the interval consistency gate."""

    max_std_dev_ratio: float = 0.25
    """A cluster is rejected when std_dev_days > ratio * avg_interval_days."""


@dataclass
class CadenceRule:
    """Inclusive day range for a named cadence and its base confidence."""
    frequency: RecurrenceFrequency
    min_days: float
    max_days: float
    base_confidence: Decimal

    def matches(self, avg_interval_days: float) -> bool:
        return self.min_days <= avg_interval_days <= self.max_days


def _default_cadence_rules() -> List[CadenceRule]:
    return [
        CadenceRule(RecurrenceFrequency.MONTHLY, 25, 35, Decimal("0.8")),
        CadenceRule(RecurrenceFrequency.WEEKLY, 6, 8, Decimal("0.8")),
        CadenceRule(RecurrenceFrequency.BI_WEEKLY, 13, 16, Decimal("0.7")),
        CadenceRule(RecurrenceFrequency.QUARTERLY, 85, 95, Decimal("0.7")),
        CadenceRule(RecurrenceFrequency.YEARLY, 355, 375, Decimal("0.7")),
    ]


@dataclass
class FrequencyThresholds:
    """
    Day range thresholds for frequency classification.

    Rules are checked in order; the first inclusive match wins. Intervals that
    match no rule are labelled "every N days" with the fallback confidence.
    """

    rules: List[CadenceRule] = field(default_factory=_default_cadence_rules)
    fallback_confidence: Decimal = Decimal("0.6")


@dataclass
class ConfidenceBonuses:
    """Sample-size adjustments applied on top of the cadence base confidence."""

    bonuses: List[Tuple[int, Decimal]] = field(
        default_factory=lambda: [(4, Decimal("0.1")), (6, Decimal("0.1"))]
    )
    """(minimum sample_count, bonus) pairs; every satisfied pair is added."""

    max_confidence: Decimal = Decimal("1.0")

    def __post_init__(self):
        for min_samples, bonus in self.bonuses:
            if bonus < 0:
                raise ValueError(
                    f"Confidence bonuses must be non-negative, got {bonus} at {min_samples} samples"
                )


class DetectionConfig:
    """
    Master configuration for recurring pattern detection.

    Aggregates all configuration classes into a single configuration object.
    """

    def __init__(
        self,
        amount_clustering: Optional[AmountClusteringConfig] = None,
        consistency: Optional[ConsistencyConfig] = None,
        frequency_thresholds: Optional[FrequencyThresholds] = None,
        confidence_bonuses: Optional[ConfidenceBonuses] = None,
    ):
        """
        Initialize detection configuration.

        Args:
            amount_clustering: Amount clustering config (creates default if None)
            consistency: Interval consistency config (creates default if None)
            frequency_thresholds: Cadence ranges config (creates default if None)
            confidence_bonuses: Sample-size bonus config (creates default if None)
        """
        self.amount_clustering = amount_clustering or AmountClusteringConfig()
        self.consistency = consistency or ConsistencyConfig()
        self.frequency_thresholds = frequency_thresholds or FrequencyThresholds()
        self.confidence_bonuses = confidence_bonuses or ConfidenceBonuses()

    @classmethod
    def from_environment(cls) -> 'DetectionConfig':
        """
        Create configuration from environment variables with fallback to defaults.

        Environment variables:
        - RECURRING_AMOUNT_TOLERANCE
        - RECURRING_CONSISTENCY_RATIO
        - RECURRING_CLUSTER_STRATEGY (greedy | centroid)
        """
        return cls(
            amount_clustering=AmountClusteringConfig(
                tolerance=float(os.getenv('RECURRING_AMOUNT_TOLERANCE', 0.10)),
                strategy=ClusteringStrategy(os.getenv('RECURRING_CLUSTER_STRATEGY', 'greedy').lower()),
            ),
            consistency=ConsistencyConfig(
                max_std_dev_ratio=float(os.getenv('RECURRING_CONSISTENCY_RATIO', 0.25)),
            ),
        )


# Default configuration instance
DEFAULT_CONFIG = DetectionConfig()

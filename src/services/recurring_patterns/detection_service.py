"""
Recurring Pattern Detection Service.

This module turns a user's transaction history into a ranked list of
recurring charges.

## Detection Pipeline

```mermaid
graph TD
    A[Transactions] --> B[MerchantGrouper]
    B --> C[AmountClusterer]
    C --> D[IntervalAnalyzer]
    D --> E{Consistent spacing?}
    E -->|No| F[Discard cluster]
    E -->|Yes| G[FrequencyClassifier]
    G --> H[ConfidenceScoreCalculator]
    H --> I[RecurringPattern]
    I --> J[Sort by confidence]
```

Detection is a pure function of its input: no I/O, no clock reads.
"""

import logging
from typing import Any, Iterable, List, Optional

from models.recurring_pattern import AmountCluster, RecurringPattern
from models.transaction import parse_transaction_records
from services.recurring_patterns.analyzers import (
    MerchantGrouper,
    AmountClusterer,
    IntervalAnalyzer,
    IntervalStatistics,
    FrequencyClassifier,
    ConfidenceScoreCalculator,
)
from services.recurring_patterns.config import DetectionConfig, DEFAULT_CONFIG
from utils.performance import DetectionPerformanceTracker
from utils.temporal_utils import add_days, round_half_up

logger = logging.getLogger(__name__)


class RecurringPatternDetectionService:
    """
    Orchestrates recurring pattern detection using specialized analyzers.

    Groups transactions by merchant, splits each merchant's transactions into
    amount clusters, and keeps the clusters whose spacing is regular enough to
    be a recurring charge.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        """
        Initialize the detection service.

        Args:
            config: Optional detection configuration. If None, uses DEFAULT_CONFIG.
        """
        self.config = config or DEFAULT_CONFIG

        self.merchant_grouper = MerchantGrouper(
            min_group_size=self.config.amount_clustering.min_cluster_size
        )
        self.amount_clusterer = AmountClusterer(self.config.amount_clustering)
        self.interval_analyzer = IntervalAnalyzer(self.config.consistency)
        self.frequency_classifier = FrequencyClassifier(self.config.frequency_thresholds)
        self.confidence_calculator = ConfidenceScoreCalculator(self.config.confidence_bonuses)

    def detect_recurring_patterns(self, transactions: Iterable[Any]) -> List[RecurringPattern]:
        """
        Detect recurring patterns in transaction history.

        Args:
            transactions: TransactionRecord objects or raw transaction mappings.
                Invalid mappings are skipped.

        Returns:
            Patterns sorted by confidence, highest first. Patterns with equal
            confidence keep the order in which they were found.
        """
        records = parse_transaction_records(transactions)
        patterns: List[RecurringPattern] = []

        with DetectionPerformanceTracker("recurring_pattern_detection") as tracker:
            tracker.set_transaction_count(len(records))

            with tracker.stage("merchant_grouping"):
                groups = self.merchant_grouper.group(records)
            tracker.set_merchant_groups(len(groups))

            for merchant_key, merchant_transactions in groups.items():
                with tracker.stage("amount_clustering"):
                    clusters = self.amount_clusterer.cluster(merchant_transactions)
                tracker.add_clusters_identified(len(clusters))

                for cluster in clusters:
                    with tracker.stage("interval_analysis"):
                        stats = self.interval_analyzer.analyze(cluster)
                        consistent = stats is not None and self.interval_analyzer.is_consistent(stats)

                    if not consistent:
                        tracker.add_cluster_rejected()
                        logger.debug(
                            f"Rejected cluster for {merchant_key} at {cluster.representative_amount}: "
                            f"irregular or insufficient dated samples"
                        )
                        continue

                    with tracker.stage("pattern_building"):
                        patterns.append(self._build_pattern(merchant_key, cluster, stats))

            # sorted() is stable, ties keep discovery order
            patterns = sorted(patterns, key=lambda p: -p.confidence)
            tracker.set_patterns_detected(len(patterns))

        logger.info(f"Detection complete: found {len(patterns)} patterns in {len(records)} transactions")
        return patterns

    def _build_pattern(
        self,
        merchant_key: str,
        cluster: AmountCluster,
        stats: IntervalStatistics
    ) -> RecurringPattern:
        """
        Build a RecurringPattern from an accepted cluster.

        Args:
            merchant_key: Grouping key of the merchant
            cluster: Accepted amount cluster
            stats: Interval statistics of the cluster

        Returns:
            RecurringPattern
        """
        classification = self.frequency_classifier.classify(stats.avg_interval_days)
        confidence = self.confidence_calculator.calculate(
            classification.base_confidence, stats.sample_count
        )

        last_date = stats.last_transaction.occurred_at.date()
        next_due = add_days(last_date, round_half_up(stats.avg_interval_days))

        return RecurringPattern(
            merchant_key=merchant_key,
            category=cluster.category,
            avg_amount=cluster.representative_amount,
            frequency_label=classification.label,
            confidence=confidence,
            sample_count=stats.sample_count,
            avg_interval_days=stats.avg_interval_days,
            std_dev_days=stats.std_dev_days,
            last_transaction_date=last_date,
            next_due_date=next_due,
            is_subscription=True,
        )


def detect_recurring_patterns(
    transactions: Iterable[Any],
    config: Optional[DetectionConfig] = None
) -> List[RecurringPattern]:
    """Module-level shortcut for a one-off detection run."""
    return RecurringPatternDetectionService(config).detect_recurring_patterns(transactions)

"""
Interval analyzer for recurring pattern detection.

Computes the day gaps between consecutive transactions of an amount cluster
and their mean and population standard deviation.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from models.recurring_pattern import AmountCluster
from models.transaction import TransactionRecord
from services.recurring_patterns.config import ConsistencyConfig
from utils.temporal_utils import days_between

logger = logging.getLogger(__name__)


@dataclass
class IntervalStatistics:
    """Chronological interval statistics for one cluster."""
    members: List[TransactionRecord]
    intervals: List[int]
    avg_interval_days: float
    std_dev_days: float

    @property
    def sample_count(self) -> int:
        return len(self.members)

    @property
    def last_transaction(self) -> TransactionRecord:
        return self.members[-1]


class IntervalAnalyzer:
    """
    Analyzes the spacing of transactions within a cluster.

    Undated members are dropped before any computation, which can leave a
    cluster with too few samples to analyze.
    """

    def __init__(self, config: Optional[ConsistencyConfig] = None):
        """
        Initialize the interval analyzer.

        Args:
            config: Consistency gate configuration (default ratio 0.25)
        """
        self.config = config or ConsistencyConfig()

    def analyze(self, cluster: AmountCluster) -> Optional[IntervalStatistics]:
        """
        Calculate interval statistics for a cluster.

        Args:
            cluster: Amount cluster in any member order

        Returns:
            IntervalStatistics, or None if fewer than two dated members remain
        """
        dated = [txn for txn in cluster.members if txn.is_dated]
        dropped = cluster.size - len(dated)
        if dropped:
            logger.debug(f"Dropped {dropped} undated transactions from cluster at {cluster.representative_amount}")

        if len(dated) < 2:
            return None

        # stable, so equal timestamps keep input order
        dated.sort(key=lambda t: t.occurred_at)
        intervals = self._calculate_intervals(dated)

        return IntervalStatistics(
            members=dated,
            intervals=intervals,
            avg_interval_days=float(np.mean(intervals)),
            std_dev_days=float(np.std(intervals)),
        )

    def is_consistent(self, stats: IntervalStatistics) -> bool:
        """Accept only clusters whose spacing varies by at most the configured ratio."""
        return stats.std_dev_days <= self.config.max_std_dev_ratio * stats.avg_interval_days

    def _calculate_intervals(self, transactions: List[TransactionRecord]) -> List[int]:
        """
        Calculate day intervals between consecutive transactions.

        Args:
            transactions: Dated transactions sorted by occurred_at

        Returns:
            List of intervals in whole days
        """
        return [
            days_between(transactions[i].occurred_at, transactions[i + 1].occurred_at)
            for i in range(len(transactions) - 1)
        ]

"""
Amount clusterer for recurring pattern detection.

Splits one merchant's transactions into clusters of similar amount, so that
e.g. a $12.99 subscription and occasional $80 purchases from the same
merchant are analyzed separately.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from models.recurring_pattern import AmountCluster
from models.transaction import TransactionRecord
from services.recurring_patterns.config import AmountClusteringConfig, ClusteringStrategy

logger = logging.getLogger(__name__)


class AmountClusterer:
    """
    Single forward pass, first-fit amount clustering.

    With the GREEDY strategy the representative is the amount of the
    transaction that opened the cluster. The result depends on input order: a
    price that drifts up slowly can end up split across clusters. The CENTROID
    strategy compares against the running mean of the cluster instead.
    """

    def __init__(self, config: Optional[AmountClusteringConfig] = None):
        """
        Initialize the amount clusterer.

        Args:
            config: Clustering configuration (default tolerance 10%, min size 2)
        """
        self.config = config or AmountClusteringConfig()
        self.tolerance = Decimal(str(self.config.tolerance))

    def cluster(self, transactions: List[TransactionRecord]) -> List[AmountCluster]:
        """
        Cluster transactions by amount.

        Args:
            transactions: Transactions from a single merchant, in input order

        Returns:
            Clusters with at least min_cluster_size members, in creation order
        """
        clusters: List[AmountCluster] = []

        for txn in transactions:
            if txn.amount <= 0:
                logger.debug(f"Excluding non-positive amount {txn.amount} for {txn.grouping_key}")
                continue

            target = self._find_cluster(clusters, txn.amount)
            if target is None:
                clusters.append(AmountCluster(representative_amount=txn.amount, members=[txn]))
                continue

            target.members.append(txn)
            if self.config.strategy == ClusteringStrategy.CENTROID:
                target.representative_amount = self._mean_amount(target.members)

        return [c for c in clusters if c.size >= self.config.min_cluster_size]

    def is_within_tolerance(self, amount: Decimal, representative: Decimal) -> bool:
        """Check |amount - representative| / representative <= tolerance."""
        if representative <= 0:
            return False
        return abs(amount - representative) / representative <= self.tolerance

    def _find_cluster(self, clusters: List[AmountCluster], amount: Decimal) -> Optional[AmountCluster]:
        for candidate in clusters:
            if self.is_within_tolerance(amount, candidate.representative_amount):
                return candidate
        return None

    def _mean_amount(self, members: List[TransactionRecord]) -> Decimal:
        total = sum((m.amount for m in members), Decimal("0"))
        return (total / Decimal(len(members))).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

"""
Merchant grouper for recurring pattern detection.

Partitions a flat transaction list into per-merchant groups.
"""

import logging
from typing import Dict, List

from models.transaction import TransactionRecord

logger = logging.getLogger(__name__)


class MerchantGrouper:
    """
    Groups transactions by merchant key, falling back to the description.

    Keys are compared exactly; no normalization or fuzzy matching is applied.
    """

    def __init__(self, min_group_size: int = 2):
        """
        Initialize the merchant grouper.

        Args:
            min_group_size: Groups smaller than this are dropped (default: 2)
        """
        self.min_group_size = min_group_size

    def group(self, transactions: List[TransactionRecord]) -> Dict[str, List[TransactionRecord]]:
        """
        Group transactions by merchant key.

        Args:
            transactions: Transactions in any order

        Returns:
            Mapping of merchant key to its transactions, in first-seen order
        """
        groups: Dict[str, List[TransactionRecord]] = {}
        unkeyed = 0

        for txn in transactions:
            key = txn.grouping_key
            if key is None:
                unkeyed += 1
                continue
            groups.setdefault(key, []).append(txn)

        if unkeyed:
            logger.debug(f"Skipped {unkeyed} transactions with no merchant key or description")

        return {
            key: members
            for key, members in groups.items()
            if len(members) >= self.min_group_size
        }

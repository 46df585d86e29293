"""
Recurring Pattern Service.

Ties detection to storage: runs detection over a user's transactions, saves
the result, lets the user confirm or correct a pattern by hand, and serves the
read-only projections over saved patterns.
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from models.recurring_pattern import MonthlyEquivalent, RecurringPattern, UpcomingCharge
from services.recurring_patterns.config import DetectionConfig
from services.recurring_patterns.detection_service import RecurringPatternDetectionService
from services.recurring_patterns.normalization import (
    build_monthly_equivalents,
    total_monthly_equivalent,
)
from services.recurring_patterns.upcoming import DEFAULT_HORIZON_DAYS, filter_upcoming
from utils.db.base import NotFound
from utils.db.recurring_patterns import (
    DynamoDBRecurringPatternRepository,
    RecurringPatternRepository,
)

logger = logging.getLogger(__name__)

# Fields a user may set when saving a pattern by hand
EDITABLE_PATTERN_FIELDS = (
    'category',
    'avgAmount',
    'frequencyLabel',
    'nextDueDate',
    'isSubscription',
    'confidence',
)
MANUAL_PATTERN_CONFIDENCE = 0.5


class RecurringPatternService:
    """Service for detecting, storing and projecting a user's recurring patterns."""

    def __init__(
        self,
        repository: Optional[RecurringPatternRepository] = None,
        detection_service: Optional[RecurringPatternDetectionService] = None
    ):
        """
        Initialize the service.

        Args:
            repository: Pattern storage (DynamoDB if None)
            detection_service: Detection pipeline (configured from the environment if None)
        """
        self.repository = repository or DynamoDBRecurringPatternRepository()
        self.detection_service = detection_service or RecurringPatternDetectionService(
            DetectionConfig.from_environment()
        )

    def detect(self, transactions: Iterable[Any]) -> List[RecurringPattern]:
        """Run detection without saving."""
        return self.detection_service.detect_recurring_patterns(transactions)

    def detect_and_save(self, user_id: str, transactions: Iterable[Any]) -> List[RecurringPattern]:
        """
        Detect patterns and save them for the user.

        Patterns are stored one per merchant; when a merchant has several
        accepted clusters only the highest-confidence one is stored.

        Args:
            user_id: Owner of the transactions
            transactions: TransactionRecords or raw transaction mappings

        Returns:
            All detected patterns, sorted by confidence descending
        """
        patterns = self.detect(transactions)
        to_store = self._one_per_merchant(patterns)

        if len(to_store) < len(patterns):
            logger.info(
                f"User {user_id}: {len(patterns) - len(to_store)} lower-confidence patterns "
                f"share a merchant with a stronger pattern and were not stored"
            )

        saved = self.repository.upsert_patterns(user_id, to_store)
        logger.info(f"User {user_id}: detected {len(patterns)} patterns, saved {saved}")
        return patterns

    def list_patterns(self, user_id: str) -> List[RecurringPattern]:
        """List stored patterns, soonest next due date first."""
        patterns = self.repository.list_patterns(user_id)
        return sorted(patterns, key=lambda p: p.next_due_date)

    def get_pattern(self, user_id: str, merchant_key: str) -> RecurringPattern:
        """
        Get one stored pattern.

        Raises:
            NotFound: If the user has no pattern for the merchant
        """
        pattern = self.repository.get_pattern(user_id, merchant_key)
        if pattern is None:
            raise NotFound(f"Recurring pattern not found for merchant {merchant_key}")
        return pattern

    def save_pattern(self, user_id: str, merchant_key: str, data: Dict[str, Any]) -> RecurringPattern:
        """
        Create or update one pattern by hand.

        Only the editable fields are taken from data, so a merchantKey in the
        body is ignored. Updating keeps the stored pattern's interval
        statistics. A new pattern needs avgAmount, frequencyLabel and
        nextDueDate; isSubscription defaults to true and confidence to 0.5.

        Args:
            user_id: Owner of the pattern
            merchant_key: Merchant the pattern is stored under
            data: camelCase pattern fields

        Returns:
            The saved pattern

        Raises:
            ValidationError: If the merged fields do not form a valid pattern
        """
        updates = {name: data[name] for name in EDITABLE_PATTERN_FIELDS if name in data}
        existing = self.repository.get_pattern(user_id, merchant_key)

        if existing is not None:
            fields = existing.model_dump(by_alias=True)
            fields.update(updates)
        else:
            fields = {'isSubscription': True, **updates}
            if fields.get('confidence') is None:
                fields['confidence'] = MANUAL_PATTERN_CONFIDENCE
        fields['merchantKey'] = merchant_key

        pattern = RecurringPattern.model_validate(fields)
        self.repository.put_pattern(user_id, pattern)

        action = "Updated" if existing is not None else "Created"
        logger.info(f"User {user_id}: {action} recurring pattern {merchant_key}")
        return pattern

    def delete_pattern(self, user_id: str, merchant_key: str) -> None:
        self.repository.delete_pattern(user_id, merchant_key)

    def get_monthly_equivalents(self, user_id: str) -> Dict[str, Any]:
        """
        Monthly equivalents of all stored patterns.

        Returns:
            Dict with 'items' (List[MonthlyEquivalent]) and 'total' (Decimal)
        """
        patterns = self.list_patterns(user_id)
        items: List[MonthlyEquivalent] = build_monthly_equivalents(patterns)
        total: Decimal = total_monthly_equivalent(patterns)
        return {'items': items, 'total': total}

    def get_upcoming(
        self,
        user_id: str,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
        today: Optional[date] = None
    ) -> List[UpcomingCharge]:
        """
        Stored patterns due within the horizon.

        Args:
            user_id: Owner of the patterns
            horizon_days: Window length in days
            today: Reference date (current UTC date if None)
        """
        reference = today or datetime.now(timezone.utc).date()
        return filter_upcoming(self.repository.list_patterns(user_id), reference, horizon_days)

    @staticmethod
    def _one_per_merchant(patterns: List[RecurringPattern]) -> List[RecurringPattern]:
        # input is sorted by confidence, so the first pattern seen per merchant wins
        best: Dict[str, RecurringPattern] = {}
        for pattern in patterns:
            best.setdefault(pattern.merchant_key, pattern)
        return list(best.values())

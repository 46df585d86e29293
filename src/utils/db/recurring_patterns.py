"""
Recurring pattern database operations.

Patterns are stored one per (userId, merchantKey). Every detection run
overwrites the stored pattern for a merchant, so saving is an idempotent
upsert and re-running detection never creates duplicates.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

from boto3.dynamodb.conditions import Key

from models.recurring_pattern import RecurringPattern
from .base import (
    tables,
    dynamodb_operation,
    retry_on_throttle,
    monitor_performance,
    NotFound,
)

logger = logging.getLogger(__name__)

# Constants
DB_TABLE_NOT_INITIALIZED_ERROR = "Database table not initialized"
PATTERN_KEY_ATTRIBUTES = ['userId', 'merchantKey']


class RecurringPatternRepository(Protocol):
    """Storage collaborator for detected recurring patterns."""

    def upsert_patterns(self, user_id: str, patterns: Iterable[RecurringPattern]) -> int:
        ...

    def put_pattern(self, user_id: str, pattern: RecurringPattern) -> None:
        ...

    def list_patterns(self, user_id: str) -> List[RecurringPattern]:
        ...

    def get_pattern(self, user_id: str, merchant_key: str) -> Optional[RecurringPattern]:
        ...

    def delete_pattern(self, user_id: str, merchant_key: str) -> None:
        ...


class DynamoDBRecurringPatternRepository:
    """
    DynamoDB-backed pattern repository.

    The table has partition key userId and sort key merchantKey. When no table
    is injected it is resolved from RECURRING_PATTERNS_TABLE on first use.
    """

    def __init__(self, table: Optional[Any] = None):
        self._table = table

    @property
    def table(self) -> Any:
        table = self._table or tables.recurring_patterns
        if not table:
            logger.error("DB: RecurringPatterns table not initialized")
            raise ConnectionError(DB_TABLE_NOT_INITIALIZED_ERROR)
        return table

    @monitor_performance(operation_type="batch_write", warn_threshold_ms=1000)
    @retry_on_throttle(max_attempts=3)
    @dynamodb_operation("upsert_patterns")
    def upsert_patterns(self, user_id: str, patterns: Iterable[RecurringPattern]) -> int:
        """
        Save patterns for a user, replacing any stored pattern with the same merchant key.

        Args:
            user_id: Owner of the patterns
            patterns: Patterns to save

        Returns:
            Number of patterns written
        """
        table = self.table
        count = 0

        with table.batch_writer(overwrite_by_pkeys=PATTERN_KEY_ATTRIBUTES) as batch:
            for pattern in patterns:
                batch.put_item(Item=pattern.to_dynamodb_item(user_id))
                count += 1

        logger.info(f"DB: Upserted {count} recurring patterns for user {user_id}")
        return count

    @monitor_performance(warn_threshold_ms=200)
    @retry_on_throttle(max_attempts=3)
    @dynamodb_operation("put_pattern")
    def put_pattern(self, user_id: str, pattern: RecurringPattern) -> None:
        """Save one pattern, replacing any stored pattern for the same merchant."""
        self.table.put_item(Item=pattern.to_dynamodb_item(user_id))
        logger.info(f"DB: Saved recurring pattern {pattern.merchant_key} for user {user_id}")

    @monitor_performance(operation_type="query", warn_threshold_ms=500)
    @retry_on_throttle(max_attempts=3)
    @dynamodb_operation("list_patterns")
    def list_patterns(self, user_id: str) -> List[RecurringPattern]:
        """
        List all stored patterns for a user.

        Args:
            user_id: Owner of the patterns

        Returns:
            Patterns in storage order (merchant key)
        """
        table = self.table
        query_params: Dict[str, Any] = {
            'KeyConditionExpression': Key('userId').eq(user_id)
        }

        patterns: List[RecurringPattern] = []
        while True:
            response = table.query(**query_params)
            for item in response.get('Items', []):
                patterns.append(RecurringPattern.from_dynamodb_item(item))

            last_evaluated_key = response.get('LastEvaluatedKey')
            if not last_evaluated_key:
                break
            query_params['ExclusiveStartKey'] = last_evaluated_key

        logger.debug(f"DB: Found {len(patterns)} recurring patterns for user {user_id}")
        return patterns

    @monitor_performance(warn_threshold_ms=200)
    @retry_on_throttle(max_attempts=3)
    @dynamodb_operation("get_pattern")
    def get_pattern(self, user_id: str, merchant_key: str) -> Optional[RecurringPattern]:
        """Retrieve one pattern, or None if the user has none for the merchant."""
        response = self.table.get_item(Key={'userId': user_id, 'merchantKey': merchant_key})
        item = response.get('Item')
        if not item:
            return None
        return RecurringPattern.from_dynamodb_item(item)

    @retry_on_throttle(max_attempts=3)
    @dynamodb_operation("delete_pattern")
    def delete_pattern(self, user_id: str, merchant_key: str) -> None:
        """
        Delete one pattern.

        Raises:
            NotFound: If the user has no pattern for the merchant
        """
        response = self.table.delete_item(
            Key={'userId': user_id, 'merchantKey': merchant_key},
            ReturnValues='ALL_OLD'
        )
        if not response.get('Attributes'):
            raise NotFound(f"Recurring pattern not found for merchant {merchant_key}")
        logger.info(f"DB: Deleted recurring pattern {merchant_key} for user {user_id}")


class InMemoryRecurringPatternRepository:
    """Dictionary-backed repository for tests and local runs."""

    def __init__(self):
        self._items: Dict[str, Dict[str, RecurringPattern]] = {}

    def upsert_patterns(self, user_id: str, patterns: Iterable[RecurringPattern]) -> int:
        user_items = self._items.setdefault(user_id, {})
        count = 0
        for pattern in patterns:
            user_items[pattern.merchant_key] = pattern
            count += 1
        return count

    def put_pattern(self, user_id: str, pattern: RecurringPattern) -> None:
        self._items.setdefault(user_id, {})[pattern.merchant_key] = pattern

    def list_patterns(self, user_id: str) -> List[RecurringPattern]:
        user_items = self._items.get(user_id, {})
        return [user_items[key] for key in sorted(user_items)]

    def get_pattern(self, user_id: str, merchant_key: str) -> Optional[RecurringPattern]:
        return self._items.get(user_id, {}).get(merchant_key)

    def delete_pattern(self, user_id: str, merchant_key: str) -> None:
        user_items = self._items.get(user_id, {})
        if merchant_key not in user_items:
            raise NotFound(f"Recurring pattern not found for merchant {merchant_key}")
        del user_items[merchant_key]

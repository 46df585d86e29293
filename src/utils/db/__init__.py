"""
Database utilities for DynamoDB operations.
"""

# ============================================================================
# Core Infrastructure
# ============================================================================

from .base import (
    # Table management
    tables,
    DynamoDBTables,

    # Exceptions
    NotAuthorized,
    NotFound,

    # Decorators
    dynamodb_operation,
    retry_on_throttle,
    monitor_performance,
)

# ============================================================================
# Recurring Pattern Operations
# ============================================================================

from .recurring_patterns import (
    RecurringPatternRepository,
    DynamoDBRecurringPatternRepository,
    InMemoryRecurringPatternRepository,
    DB_TABLE_NOT_INITIALIZED_ERROR,
)

__all__ = [
    'tables',
    'DynamoDBTables',
    'NotAuthorized',
    'NotFound',
    'dynamodb_operation',
    'retry_on_throttle',
    'monitor_performance',
    'RecurringPatternRepository',
    'DynamoDBRecurringPatternRepository',
    'InMemoryRecurringPatternRepository',
    'DB_TABLE_NOT_INITIALIZED_ERROR',
]

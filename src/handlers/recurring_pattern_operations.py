"""
Recurring Pattern Operations Handler.

This module provides API endpoints for recurring pattern detection, stored
pattern management (including saving a pattern by hand), monthly equivalents
and upcoming charges.
"""

import logging
from typing import Dict, Any, List, Optional

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

from models.recurring_pattern import RecurringPattern
from models.transaction import parse_transaction_records
from services.recurring_patterns.pattern_service import RecurringPatternService
from services.recurring_patterns.upcoming import DEFAULT_HORIZON_DAYS
from utils.lambda_utils import (
    mandatory_path_parameter,
    optional_int_query_parameter,
    parse_json_body,
)
from utils.handler_decorators import (
    api_handler,
    standard_error_handling,
    require_authenticated_user,
)

# Constants
NO_PATTERNS_MESSAGE = "No recurring patterns detected yet"
MAX_UPCOMING_DAYS = 365

_pattern_service: Optional[RecurringPatternService] = None


def get_pattern_service() -> RecurringPatternService:
    """Return the service shared across warm Lambda invocations."""
    global _pattern_service
    if _pattern_service is None:
        _pattern_service = RecurringPatternService()
    return _pattern_service


def _serialize_patterns(patterns: List[RecurringPattern]) -> List[Dict[str, Any]]:
    return [pattern.model_dump(by_alias=True, mode="json") for pattern in patterns]


def _with_empty_message(body: Dict[str, Any], is_empty: bool) -> Dict[str, Any]:
    if is_empty:
        body["message"] = NO_PATTERNS_MESSAGE
    return body


# ============================================================================
# Handler Functions
# ============================================================================

@api_handler()
def detect_recurring_patterns_handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Run recurring pattern detection over the supplied transactions.

    POST /recurring-patterns/detect

    Request body:
    {
        "transactions": [
            {"merchantKey": "Spotify", "amount": "12.99", "occurredAt": "2024-01-15", "category": "Music"}
        ],
        "persist": true    # Save detected patterns (default: true)
    }

    Returns:
    {
        "patterns": [...],
        "metadata": {
            "transactionsReceived": 12,
            "transactionsAnalyzed": 12,
            "patternsDetected": 2,
            "persisted": true
        }
    }
    """
    body = parse_json_body(event)
    raw_transactions = body.get("transactions")
    if not isinstance(raw_transactions, list):
        raise ValueError("transactions must be a list")

    persist = body.get("persist", True)
    if not isinstance(persist, bool):
        raise ValueError("persist must be a boolean")

    records = parse_transaction_records(raw_transactions)
    service = get_pattern_service()

    if persist:
        patterns = service.detect_and_save(user_id, records)
    else:
        patterns = service.detect(records)

    logger.info(f"Detected {len(patterns)} recurring patterns for user {user_id} (persist={persist})")

    return _with_empty_message({
        "patterns": _serialize_patterns(patterns),
        "metadata": {
            "transactionsReceived": len(raw_transactions),
            "transactionsAnalyzed": len(records),
            "patternsDetected": len(patterns),
            "persisted": persist,
        },
    }, not patterns)


@api_handler()
def get_patterns_handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Get stored recurring patterns for a user, soonest due first.

    GET /recurring-patterns

    Returns:
    {
        "patterns": [...],
        "metadata": {"totalPatterns": 3}
    }
    """
    patterns = get_pattern_service().list_patterns(user_id)
    return _with_empty_message({
        "patterns": _serialize_patterns(patterns),
        "metadata": {"totalPatterns": len(patterns)},
    }, not patterns)


@api_handler()
def get_pattern_handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Get the stored pattern for one merchant.

    GET /recurring-patterns/{merchantKey}
    """
    merchant_key = mandatory_path_parameter(event, "merchantKey")
    pattern = get_pattern_service().get_pattern(user_id, merchant_key)
    return {"pattern": pattern.model_dump(by_alias=True, mode="json")}


@api_handler()
def save_pattern_handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Create or update the pattern for one merchant by hand.

    PUT /recurring-patterns/{merchantKey}

    Request body (all optional on update):
    {
        "avgAmount": "12.99",
        "frequencyLabel": "monthly",
        "nextDueDate": "2024-04-02",
        "category": "Music",
        "isSubscription": true,    # default: true
        "confidence": 0.9          # default: 0.5
    }
    """
    merchant_key = mandatory_path_parameter(event, "merchantKey")
    body = parse_json_body(event)
    pattern = get_pattern_service().save_pattern(user_id, merchant_key, body)
    return {"pattern": pattern.model_dump(by_alias=True, mode="json")}


@api_handler()
def delete_pattern_handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Delete the stored pattern for one merchant.

    DELETE /recurring-patterns/{merchantKey}
    """
    merchant_key = mandatory_path_parameter(event, "merchantKey")
    get_pattern_service().delete_pattern(user_id, merchant_key)
    return {"message": "Recurring pattern deleted", "merchantKey": merchant_key}


@api_handler()
def get_monthly_equivalents_handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Get the monthly equivalent of every stored pattern.

    GET /recurring-patterns/monthly-equivalents

    Returns:
    {
        "monthlyEquivalents": [{"merchantKey": ..., "monthlyAmount": "40.00", ...}],
        "totalMonthly": "52.99"
    }
    """
    result = get_pattern_service().get_monthly_equivalents(user_id)
    items = result["items"]
    return _with_empty_message({
        "monthlyEquivalents": [item.model_dump(by_alias=True, mode="json") for item in items],
        "totalMonthly": result["total"],
    }, not items)


@api_handler()
def get_upcoming_handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Get stored patterns due within the next N days.

    GET /recurring-patterns/upcoming?days=30

    Query parameters:
    - days: Window length in days, 0 to 365 (default: 30)
    """
    days = optional_int_query_parameter(
        event, "days", DEFAULT_HORIZON_DAYS, min_value=0, max_value=MAX_UPCOMING_DAYS
    )
    upcoming = get_pattern_service().get_upcoming(user_id, horizon_days=days)
    return _with_empty_message({
        "upcoming": [charge.model_dump(by_alias=True, mode="json") for charge in upcoming],
        "metadata": {"days": days, "totalUpcoming": len(upcoming)},
    }, not upcoming)


# ============================================================================
# Main Handler
# ============================================================================

@require_authenticated_user
@standard_error_handling
def handler(event: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """
    Main handler for recurring pattern operations.

    Routes requests to appropriate handler functions based on route.
    """
    route = event.get("routeKey")
    if not route:
        raise ValueError("Route not specified")

    route_map = {
        "POST /recurring-patterns/detect": detect_recurring_patterns_handler,
        "GET /recurring-patterns": get_patterns_handler,
        "GET /recurring-patterns/monthly-equivalents": get_monthly_equivalents_handler,
        "GET /recurring-patterns/upcoming": get_upcoming_handler,
        "GET /recurring-patterns/{merchantKey}": get_pattern_handler,
        "PUT /recurring-patterns/{merchantKey}": save_pattern_handler,
        "DELETE /recurring-patterns/{merchantKey}": delete_pattern_handler,
    }

    handler_func = route_map.get(route)
    if not handler_func:
        raise ValueError(f"Unsupported route: {route}")

    return handler_func(event, user_id)

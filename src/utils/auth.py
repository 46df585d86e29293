"""
Authentication utility functions.
"""
import logging
from typing import Dict, Any, Optional

from utils.db.base import NotAuthorized, NotFound

logger = logging.getLogger(__name__)

__all__ = ['get_user_from_event', 'NotAuthorized', 'NotFound']


def get_user_from_event(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Extract user information from the event.

    Identity is verified upstream by the API Gateway JWT authorizer; this only
    reads the claims it forwards.

    Args:
        event: The Lambda event object containing the request context

    Returns:
        Dictionary containing user information if found, None otherwise
        The dictionary includes:
        - id: The user's unique identifier (sub)
        - email: The user's email address
        - auth_time: The time when the user was authenticated
    """
    request_context = event.get("requestContext") or {}
    authorizer = request_context.get("authorizer") or {}
    claims = (authorizer.get("jwt") or {}).get("claims") or {}

    user_sub = claims.get("sub")
    if not user_sub:
        logger.warning("No sub claim found in authorizer claims")
        return None

    user_info = {
        "id": user_sub,
        "email": claims.get("email", "unknown"),
        "auth_time": claims.get("auth_time")
    }
    logger.debug(f"Authenticated user {user_sub}")
    return user_info

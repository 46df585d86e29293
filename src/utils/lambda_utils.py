from typing import Dict, Any, Optional
import json
from datetime import date, datetime
from decimal import Decimal

class DecimalEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            # Always return as string to preserve precision and ensure consistent type
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super(DecimalEncoder, self).default(obj)

def create_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Create a standardized API response."""
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "Content-Type,Authorization",
            "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS"
        },
        "body": json.dumps(body, cls=DecimalEncoder)
    }


# extract path parameters from the event
def optional_path_parameter(event: Dict[str, Any], parameter_name: str) -> Optional[str]:
    """Extract a path parameter from the event."""
    return (event.get('pathParameters') or {}).get(parameter_name)

def mandatory_path_parameter(event: Dict[str, Any], parameter_name: str) -> str:
    """Extract a mandatory path parameter from the event.
    Raises ValueError if the parameter is not found.
    """
    if not parameter_name:
        raise KeyError("Parameter name is required")
    parameter = optional_path_parameter(event, parameter_name)
    if not parameter:
        raise ValueError(f"Path parameter {parameter_name} not found")
    return parameter

# extract query parameters from the event
def optional_query_parameter(event: Dict[str, Any], parameter_name: str) -> Optional[str]:
    """Extract a query parameter from the event."""
    return (event.get('queryStringParameters') or {}).get(parameter_name)

def optional_int_query_parameter(
    event: Dict[str, Any],
    parameter_name: str,
    default: int,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None
) -> int:
    """Extract an integer query parameter, raising ValueError if malformed or out of range."""
    raw = optional_query_parameter(event, parameter_name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Query parameter {parameter_name} must be an integer, got {raw!r}")
    if min_value is not None and value < min_value:
        raise ValueError(f"Query parameter {parameter_name} must be at least {min_value}")
    if max_value is not None and value > max_value:
        raise ValueError(f"Query parameter {parameter_name} must be at most {max_value}")
    return value

# extract parameters from json payload body
def parse_json_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Parse the request body as a JSON object. Raises ValueError if it is not one."""
    raw = event.get('body') or '{}'
    try:
        body = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in request body: {e.msg}")
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body

"""Helper functions for the application."""
from datetime import datetime, timezone
from flask import jsonify
from typing import Any, Dict, Optional

def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def isoformat(value) -> Optional[str]:
    """Serialize dates, times and datetimes; pass None through."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(microsecond=0).isoformat()
    return value.isoformat(timespec='minutes') if hasattr(value, 'hour') else value.isoformat()

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success"):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response)

def error_response(message: str, status_code: int = 400, code: str = None,
                   details: Dict = None):
    """Return consistent error response."""
    body = {
        'error': True,
        'message': message,
        'status_code': status_code
    }
    if code:
        body['code'] = code
    if details:
        body['details'] = details

    return jsonify(body), status_code

"""Reason-coded errors raised by the services and rendered by the API."""
from typing import Dict, Optional

class AttendanceError(Exception):
    """Base error. ``message`` is shown to the end user verbatim."""

    status_code = 400
    code = 'ERROR'
    default_message = 'Request failed'

    def __init__(self, message: str = None, details: Optional[Dict] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

class ValidationError(AttendanceError):
    status_code = 400
    code = 'VALIDATION_ERROR'
    default_message = 'Invalid request data'

    def __init__(self, message: str = None, errors: list = None):
        errors = errors or []
        if message is None and errors:
            message = '; '.join(errors)
        super().__init__(message, {'errors': errors} if errors else None)
        self.errors = errors

class NotFound(AttendanceError):
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Resource not found'

class Conflict(AttendanceError):
    status_code = 409
    code = 'CONFLICT'
    default_message = 'Resource already exists'

class InvalidToken(AttendanceError):
    status_code = 400
    code = 'INVALID_TOKEN'
    default_message = 'QR code expired or invalid, ask your teacher to refresh it'

class SessionNotActive(AttendanceError):
    status_code = 409
    code = 'SESSION_NOT_ACTIVE'
    default_message = 'Attendance session is not active'

class OutsideCampusRadius(AttendanceError):
    status_code = 403
    code = 'OUTSIDE_CAMPUS_RADIUS'
    default_message = 'You are outside the allowed campus area'

class LocationRequired(OutsideCampusRadius):
    code = 'LOCATION_REQUIRED'
    default_message = 'Location is required for this session, enable location access and scan again'

class AlreadyMarked(AttendanceError):
    status_code = 409
    code = 'ALREADY_MARKED'
    default_message = 'Attendance already marked for this session'

class InvalidTransition(AttendanceError):
    status_code = 409
    code = 'INVALID_TRANSITION'
    default_message = 'Session cannot change to the requested status'

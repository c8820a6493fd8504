"""Validation utilities for the application."""
import re
from datetime import date, time
from typing import Any, Dict, List, Optional

from qr_attendance.utils.errors import ValidationError

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_name(name: str, field: str = 'Name') -> List[str]:
        """Validate a person name."""
        errors = []

        if not isinstance(name, str):
            errors.append(f"{field} must be text")
        elif not name.strip():
            errors.append(f"{field} is required")
        elif len(name.strip()) > 100:
            errors.append(f"{field} is too long")

        return errors

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> List[str]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field} is required")

        return errors

    @staticmethod
    def require_json(data: Any) -> Dict:
        """Reject missing or non-object JSON bodies."""
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    @staticmethod
    def parse_date(value: Any, field: str) -> date:
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError:
            raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")

    @staticmethod
    def parse_time(value: Any, field: str) -> time:
        if isinstance(value, time):
            return value
        try:
            return time.fromisoformat(str(value))
        except ValueError:
            raise ValidationError(f"{field} must be a time in HH:MM format")

    @staticmethod
    def parse_int(value: Any, field: str) -> int:
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be a whole number")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a whole number")

    @staticmethod
    def parse_float(value: Any, field: str) -> Optional[float]:
        if value is None or value == '':
            return None
        if isinstance(value, bool):
            raise ValidationError(f"{field} must be a number")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a number")

    @staticmethod
    def parse_bool(value: Any, field: str, default: bool = False) -> bool:
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ('true', 'false'):
            return value.lower() == 'true'
        raise ValidationError(f"{field} must be true or false")

    @staticmethod
    def validate_coordinates(latitude: Optional[float], longitude: Optional[float]) -> List[str]:
        """Validate a WGS-84 coordinate pair."""
        errors = []

        if latitude is not None and not -90 <= latitude <= 90:
            errors.append("latitude must be between -90 and 90")
        if longitude is not None and not -180 <= longitude <= 180:
            errors.append("longitude must be between -180 and 180")

        return errors

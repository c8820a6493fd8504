"""Test helpers shared across modules."""
import math
from datetime import datetime

CLASS_DAY = datetime(2026, 3, 2)

def at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    """A time on the class day used by the session fixtures."""
    return CLASS_DAY.replace(hour=hour, minute=minute, second=second)

def offset_north(latitude: float, meters: float) -> float:
    """Latitude ``meters`` due north of ``latitude`` on the haversine sphere."""
    return latitude + math.degrees(meters / 6371000)

def make_user(email: str, role, first_name: str = 'Test', last_name: str = 'User'):
    from qr_attendance.services.user_service import UserService

    return UserService.create_user({
        'email': email,
        'firstName': first_name,
        'lastName': last_name,
        'role': role.value
    })

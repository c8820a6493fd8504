"""GPS geofence verification service."""
import math
from typing import Dict, Optional

from qr_attendance.models.attendance_session import AttendanceSession
from qr_attendance.utils.errors import LocationRequired, OutsideCampusRadius, ValidationError
from qr_attendance.utils.validators import Validator

EARTH_RADIUS_METERS = 6371000

class GPSService:
    """Service for GPS and location verification."""

    @staticmethod
    def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Calculate great-circle distance between two GPS points in meters."""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)

        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) ** 2)
        a = min(1.0, max(0.0, a))
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_METERS * c

    @staticmethod
    def within_radius(campus_lat: float, campus_lon: float,
                      reported_lat: float, reported_lon: float,
                      radius_meters: float) -> bool:
        """True iff the reported point lies within ``radius_meters`` of the campus centre."""
        distance = GPSService.calculate_distance(campus_lat, campus_lon, reported_lat, reported_lon)
        return distance <= radius_meters

    @staticmethod
    def verify_location(session: AttendanceSession,
                        latitude: Optional[float],
                        longitude: Optional[float]) -> Optional[Dict]:
        """Check a scan position against the session geofence.

        Returns None when the session does not require location, otherwise
        the distance details. Raises ``LocationRequired`` for a missing
        position and ``OutsideCampusRadius`` when outside.
        """
        if not session.location_required:
            return None

        if latitude is None or longitude is None:
            raise LocationRequired()

        errors = Validator.validate_coordinates(latitude, longitude)
        if errors:
            raise ValidationError(errors=errors)

        distance = GPSService.calculate_distance(
            session.campus_latitude, session.campus_longitude,
            latitude, longitude
        )
        result = {
            'is_inside': distance <= session.campus_radius_meters,
            'distance': round(distance, 1),
            'radius': session.campus_radius_meters,
            'campus_center': {
                'latitude': session.campus_latitude,
                'longitude': session.campus_longitude
            }
        }

        if not result['is_inside']:
            raise OutsideCampusRadius(
                f"You are {round(distance)}m from campus, "
                f"attendance is only accepted within {session.campus_radius_meters}m",
                details={'distance': result['distance'], 'radius': result['radius']}
            )

        return result

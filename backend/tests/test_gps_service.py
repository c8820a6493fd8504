"""Tests for the campus geofence."""
import math

import pytest

from qr_attendance.services.gps_service import GPSService
from qr_attendance.utils.errors import LocationRequired, OutsideCampusRadius
from tests.helpers import offset_north

CAMPUS = (53.4188, -7.9037)

def test_distance_zero_for_same_point():
    assert GPSService.calculate_distance(*CAMPUS, *CAMPUS) == 0

def test_distance_one_degree_latitude():
    distance = GPSService.calculate_distance(0.0, 0.0, 1.0, 0.0)
    assert distance == pytest.approx(111195, rel=1e-3)

def test_within_radius_boundaries():
    lat_400 = offset_north(CAMPUS[0], 400)
    lat_600 = offset_north(CAMPUS[0], 600)

    assert GPSService.within_radius(*CAMPUS, lat_400, CAMPUS[1], 500)
    assert not GPSService.within_radius(*CAMPUS, lat_600, CAMPUS[1], 500)

@pytest.mark.parametrize('point', [
    (53.4200, -7.9000),
    (53.4100, -7.9200),
    (48.8534, 2.3483),
    (-33.8688, 151.2093),
])
def test_within_radius_symmetric(point):
    for radius in (50, 500, 5000, 20000000):
        assert GPSService.within_radius(*CAMPUS, *point, radius) == \
            GPSService.within_radius(*point, *CAMPUS, radius)

@pytest.mark.parametrize('meters', [0, 49, 120, 499, 501, 2500, 4999, 6000])
def test_within_radius_monotonic(meters):
    point = (offset_north(CAMPUS[0], meters), CAMPUS[1])
    radii = [50, 100, 250, 500, 1000, 2500, 5000]
    accepted = [GPSService.within_radius(*CAMPUS, *point, r) for r in radii]

    # Once accepted, every larger radius accepts too.
    first = accepted.index(True) if True in accepted else len(accepted)
    assert all(accepted[first:])
    assert not any(accepted[:first])

def test_verify_location_skipped_when_not_required(make_session):
    session = make_session(locationRequired=False)

    assert GPSService.verify_location(session, None, None) is None
    assert GPSService.verify_location(session, 0.0, 0.0) is None

def test_verify_location_requires_coordinates(make_session):
    session = make_session(
        locationRequired=True,
        campusLatitude=CAMPUS[0],
        campusLongitude=CAMPUS[1],
        campusRadiusMeters=500
    )

    with pytest.raises(LocationRequired):
        GPSService.verify_location(session, None, CAMPUS[1])
    with pytest.raises(OutsideCampusRadius):
        GPSService.verify_location(session, None, None)

def test_verify_location_reports_distance(make_session):
    session = make_session(
        locationRequired=True,
        campusLatitude=CAMPUS[0],
        campusLongitude=CAMPUS[1],
        campusRadiusMeters=500
    )

    result = GPSService.verify_location(session, offset_north(CAMPUS[0], 400), CAMPUS[1])
    assert result['is_inside']
    assert result['distance'] == pytest.approx(400, abs=1)

    with pytest.raises(OutsideCampusRadius) as excinfo:
        GPSService.verify_location(session, offset_north(CAMPUS[0], 600), CAMPUS[1])
    assert excinfo.value.details['radius'] == 500
    assert excinfo.value.details['distance'] == pytest.approx(600, abs=1)

def test_within_radius_near_antipodal_points():
    # Rounding can push the haversine term just past 1 here.
    for x in [i / 100 for i in range(1, 9000)]:
        assert not GPSService.within_radius(x, 0.0, -x, 180.0, 5000)

def test_distance_antipodal_is_half_circumference():
    distance = GPSService.calculate_distance(0.08, 0.0, -0.08, 180.0)
    assert distance == pytest.approx(math.pi * 6371000, rel=1e-6)

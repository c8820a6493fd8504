"""Shared fixtures."""
import pytest

from qr_attendance import create_app, db
from qr_attendance.models.user import UserRole
from qr_attendance.services.session_service import SessionService
from qr_attendance.services.user_service import UserService
from tests.helpers import CLASS_DAY, at, make_user

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def teacher(app):
    return make_user('teacher@example.com', UserRole.TEACHER, 'Aoife', 'Byrne')

@pytest.fixture
def student(app):
    return make_user('student@example.com', UserRole.STUDENT, 'Cian', 'Murphy')

@pytest.fixture
def other_student(app):
    return make_user('other@example.com', UserRole.STUDENT, 'Niamh', 'Kelly')

@pytest.fixture
def module(teacher):
    return UserService.create_module({
        'moduleCode': 'cs101',
        'moduleName': 'Introduction to Programming',
        'teacherId': teacher.id
    })

@pytest.fixture
def make_session(teacher, module):
    """Factory for a SCHEDULED session on CLASS_DAY, 09:00-10:30."""
    def _make(**overrides):
        data = {
            'moduleId': module.id,
            'sessionDate': CLASS_DAY.date().isoformat(),
            'startTime': '09:00',
            'endTime': '10:30',
            'classroom': 'B201',
            'qrValidityMinutes': 15,
            'locationRequired': False,
            'mandatoryAttendance': True
        }
        data.update(overrides)
        return SessionService.create_session(teacher, data)
    return _make

@pytest.fixture
def active_session(make_session):
    """Session started at 09:00 with a 15 minute QR window."""
    session = make_session()
    return SessionService.start_session(session.id, now=at(9, 0))

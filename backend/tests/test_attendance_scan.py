"""Tests for scan admission."""
import threading

import pytest

from qr_attendance import create_app, db
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.models.attendance_session import SessionStatus
from qr_attendance.models.user import UserRole
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.services.session_service import SessionService
from qr_attendance.services.user_service import UserService
from qr_attendance.utils.errors import (
    AlreadyMarked, InvalidToken, LocationRequired, NotFound,
    OutsideCampusRadius, SessionNotActive, ValidationError
)
from tests.helpers import CLASS_DAY, at, make_user, offset_north

CAMPUS = (53.4188, -7.9037)

def test_scan_within_validity_window(active_session, student):
    record = AttendanceService.admit_scan(
        active_session.qr_token, student.id,
        device_info='Mozilla/5.0', now=at(9, 14)
    )

    assert record.status == AttendanceStatus.PRESENT
    assert record.marked_at == at(9, 14)
    assert record.device_info == 'Mozilla/5.0'
    assert record.session_id == active_session.id

def test_scan_after_validity_window(active_session, student):
    with pytest.raises(InvalidToken):
        AttendanceService.admit_scan(active_session.qr_token, student.id, now=at(9, 16))

    assert AttendanceRecord.query.count() == 0

def test_second_scan_already_marked(active_session, student):
    first = AttendanceService.admit_scan(active_session.qr_token, student.id, now=at(9, 1))

    with pytest.raises(AlreadyMarked):
        AttendanceService.admit_scan(
            active_session.qr_token, student.id,
            device_info='second phone', now=at(9, 10)
        )

    records = AttendanceRecord.query.filter_by(session_id=active_session.id).all()
    assert len(records) == 1
    assert records[0].id == first.id
    assert records[0].marked_at == at(9, 1)
    assert records[0].device_info is None

def test_other_students_unaffected(active_session, student, other_student):
    AttendanceService.admit_scan(active_session.qr_token, student.id, now=at(9, 1))
    AttendanceService.admit_scan(active_session.qr_token, other_student.id, now=at(9, 2))

    assert AttendanceRecord.query.filter_by(session_id=active_session.id).count() == 2

@pytest.mark.parametrize('finish', [SessionService.complete_session, SessionService.cancel_session])
def test_scan_after_session_ends(active_session, student, finish):
    finish(active_session.id, now=at(9, 5))

    with pytest.raises(InvalidToken):
        AttendanceService.admit_scan(active_session.qr_token, student.id, now=at(9, 6))

def test_scan_rechecks_session_status(active_session, student):
    # Status flipped without revoking: the status check still rejects.
    active_session.status = SessionStatus.COMPLETED
    db.session.commit()

    with pytest.raises(SessionNotActive):
        AttendanceService.admit_scan(active_session.qr_token, student.id, now=at(9, 6))

def test_geofence_scenario(make_session, student, other_student):
    session = make_session(
        locationRequired=True,
        campusLatitude=CAMPUS[0],
        campusLongitude=CAMPUS[1],
        campusRadiusMeters=500
    )
    session = SessionService.start_session(session.id, now=at(9, 0))

    with pytest.raises(OutsideCampusRadius):
        AttendanceService.admit_scan(
            session.qr_token, student.id,
            latitude=offset_north(CAMPUS[0], 600), longitude=CAMPUS[1], now=at(9, 3)
        )

    record = AttendanceService.admit_scan(
        session.qr_token, student.id,
        latitude=offset_north(CAMPUS[0], 400), longitude=CAMPUS[1], now=at(9, 4)
    )
    assert record.status == AttendanceStatus.PRESENT
    assert record.latitude == pytest.approx(offset_north(CAMPUS[0], 400))

    with pytest.raises(LocationRequired):
        AttendanceService.admit_scan(session.qr_token, other_student.id, now=at(9, 5))

def test_geofence_rejects_antipodal_point(make_session, student):
    session = make_session(
        locationRequired=True,
        campusLatitude=0.08,
        campusLongitude=0.0,
        campusRadiusMeters=500
    )
    session = SessionService.start_session(session.id, now=at(9, 0))

    with pytest.raises(OutsideCampusRadius):
        AttendanceService.admit_scan(
            session.qr_token, student.id,
            latitude=-0.08, longitude=180.0, now=at(9, 3)
        )
    assert AttendanceRecord.query.count() == 0

def test_location_ignored_when_not_required(active_session, student):
    record = AttendanceService.admit_scan(
        active_session.qr_token, student.id,
        latitude=-33.8688, longitude=151.2093, now=at(9, 2)
    )
    assert record.status == AttendanceStatus.PRESENT

def test_late_threshold(app, active_session, student, other_student):
    app.config['LATE_THRESHOLD_MINUTES'] = 10

    on_time = AttendanceService.admit_scan(active_session.qr_token, student.id, now=at(9, 10))
    late = AttendanceService.admit_scan(active_session.qr_token, other_student.id, now=at(9, 11))

    assert on_time.status == AttendanceStatus.PRESENT
    assert late.status == AttendanceStatus.LATE

def test_scan_after_scheduled_end_is_late(teacher, module, student):
    session = SessionService.create_session(teacher, {
        'moduleId': module.id,
        'sessionDate': CLASS_DAY.date().isoformat(),
        'startTime': '09:00',
        'endTime': '09:30',
        'classroom': 'B201',
        'qrValidityMinutes': 60
    })
    session = SessionService.start_session(session.id, now=at(9, 0))

    record = AttendanceService.admit_scan(session.qr_token, student.id, now=at(9, 31))
    assert record.status == AttendanceStatus.LATE

def test_scan_requires_student(active_session, teacher):
    with pytest.raises(ValidationError):
        AttendanceService.admit_scan(active_session.qr_token, teacher.id, now=at(9, 1))
    with pytest.raises(NotFound):
        AttendanceService.admit_scan(active_session.qr_token, 9999, now=at(9, 1))

def test_scan_request_validation(app):
    with pytest.raises(ValidationError):
        AttendanceService.admit_scan_request(None)
    with pytest.raises(ValidationError):
        AttendanceService.admit_scan_request({'qrToken': 'abc'})
    with pytest.raises(ValidationError):
        AttendanceService.admit_scan_request({'qrToken': 'abc', 'studentId': 1, 'latitude': 95})

def test_concurrent_duplicate_scans_record_once(tmp_path):
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'race.db'}"
    })

    with app.app_context():
        db.create_all()
        teacher = make_user('teacher@example.com', UserRole.TEACHER)
        student = make_user('student@example.com', UserRole.STUDENT)
        module = UserService.create_module({
            'moduleCode': 'CS101', 'moduleName': 'Programming', 'teacherId': teacher.id
        })
        session = SessionService.create_session(teacher, {
            'moduleId': module.id,
            'sessionDate': CLASS_DAY.date().isoformat(),
            'startTime': '09:00',
            'endTime': '10:30',
            'classroom': 'B201'
        })
        session = SessionService.start_session(session.id, now=at(9, 0))
        token, student_id, session_id = session.qr_token, student.id, session.id
        db.session.remove()

    attempts = 8
    barrier = threading.Barrier(attempts)
    outcomes = []
    lock = threading.Lock()

    def scan():
        with app.app_context():
            barrier.wait()
            try:
                AttendanceService.admit_scan(token, student_id, now=at(9, 1))
                outcome = 'admitted'
            except AlreadyMarked:
                outcome = 'already_marked'
            except Exception as e:
                outcome = f'error: {e!r}'
            finally:
                db.session.remove()
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=scan) for _ in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert outcomes.count('admitted') == 1
    assert outcomes.count('already_marked') == attempts - 1

    with app.app_context():
        assert AttendanceRecord.query.filter_by(
            session_id=session_id, student_id=student_id
        ).count() == 1
        db.drop_all()
        db.engine.dispose()

def test_scans_racing_session_completion(tmp_path):
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'complete.db'}"
    })

    with app.app_context():
        db.create_all()
        teacher = make_user('teacher@example.com', UserRole.TEACHER)
        students = [
            make_user(f'student{i}@example.com', UserRole.STUDENT).id
            for i in range(8)
        ]
        module = UserService.create_module({
            'moduleCode': 'CS101', 'moduleName': 'Programming', 'teacherId': teacher.id
        })
        session = SessionService.create_session(teacher, {
            'moduleId': module.id,
            'sessionDate': CLASS_DAY.date().isoformat(),
            'startTime': '09:00',
            'endTime': '10:30',
            'classroom': 'B201'
        })
        session = SessionService.start_session(session.id, now=at(9, 0))
        token, session_id = session.qr_token, session.id
        db.session.remove()

    early, late = students[:4], students[4:]
    barrier = threading.Barrier(len(early) + 1)
    completed = threading.Event()
    outcomes = {}
    lock = threading.Lock()

    def scan(student_id, wait_for_completion):
        with app.app_context():
            if wait_for_completion:
                completed.wait()
            else:
                barrier.wait()
            try:
                AttendanceService.admit_scan(token, student_id, now=at(9, 1))
                outcome = 'admitted'
            except (InvalidToken, SessionNotActive):
                outcome = 'rejected'
            except Exception as e:
                outcome = f'error: {e!r}'
            finally:
                db.session.remove()
            with lock:
                outcomes[student_id] = outcome

    def complete():
        with app.app_context():
            barrier.wait()
            try:
                SessionService.complete_session(session_id, now=at(9, 1))
            finally:
                db.session.remove()
                completed.set()

    threads = [threading.Thread(target=scan, args=(sid, False)) for sid in early]
    threads += [threading.Thread(target=scan, args=(sid, True)) for sid in late]
    threads.append(threading.Thread(target=complete))
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert set(outcomes.values()) <= {'admitted', 'rejected'}
    assert all(outcomes[sid] == 'rejected' for sid in late)

    admitted = {sid for sid, outcome in outcomes.items() if outcome == 'admitted'}
    assert admitted <= set(early)

    with app.app_context():
        assert SessionService.get_session(session_id).status == SessionStatus.COMPLETED
        recorded = {
            record.student_id
            for record in AttendanceRecord.query.filter_by(session_id=session_id)
        }
        assert recorded == admitted
        db.drop_all()
        db.engine.dispose()

"""Attendance session lifecycle service."""
import logging
from datetime import date, datetime
from typing import Dict, List, Optional

from flask import current_app

from qr_attendance import db
from qr_attendance.models.attendance_session import AttendanceSession, SessionStatus
from qr_attendance.models.module import Module
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.qr_service import QRService
from qr_attendance.utils.errors import (
    InvalidTransition, NotFound, SessionNotActive, ValidationError
)
from qr_attendance.utils.helpers import utcnow
from qr_attendance.utils.validators import Validator

logger = logging.getLogger(__name__)

class SessionService:
    """Create sessions and move them through SCHEDULED -> ACTIVE -> COMPLETED/CANCELLED."""

    @staticmethod
    def get_session(session_id: int) -> AttendanceSession:
        session = db.session.get(AttendanceSession, session_id)
        if session is None:
            raise NotFound("Session not found")
        return session

    @staticmethod
    def lock_session(session_id: int, read: bool = False) -> AttendanceSession:
        """Load a session under a row lock (FOR SHARE when ``read``, else FOR UPDATE).

        Databases without row locks (SQLite) serialize writers instead.
        """
        stmt = (
            db.select(AttendanceSession)
            .where(AttendanceSession.id == session_id)
            .with_for_update(read=read)
            .execution_options(populate_existing=True)
        )
        session = db.session.execute(stmt).scalar_one_or_none()
        if session is None:
            raise NotFound("Session not found")
        return session

    @staticmethod
    def create_session(teacher: User, data: Dict) -> AttendanceSession:
        """Validate and persist a SCHEDULED session for ``teacher``."""
        config = current_app.config
        data = Validator.require_json(data)

        if teacher.role != UserRole.TEACHER:
            raise ValidationError("Only teachers can create sessions")

        errors = Validator.validate_required_fields(
            data, ['moduleId', 'sessionDate', 'startTime', 'endTime', 'classroom']
        )
        if errors:
            raise ValidationError(errors=errors)

        module = db.session.get(Module, Validator.parse_int(data['moduleId'], 'moduleId'))
        if module is None or not module.active:
            raise NotFound("Module not found")
        if module.teacher_id != teacher.id:
            raise ValidationError("Module does not belong to this teacher")

        session_date = Validator.parse_date(data['sessionDate'], 'sessionDate')
        start_time = Validator.parse_time(data['startTime'], 'startTime')
        end_time = Validator.parse_time(data['endTime'], 'endTime')
        if start_time >= end_time:
            errors.append("startTime must be before endTime")

        validity = data.get('qrValidityMinutes')
        validity = config['QR_VALIDITY_DEFAULT_MINUTES'] if validity is None \
            else Validator.parse_int(validity, 'qrValidityMinutes')
        if not config['QR_VALIDITY_MIN_MINUTES'] <= validity <= config['QR_VALIDITY_MAX_MINUTES']:
            errors.append(
                f"qrValidityMinutes must be between {config['QR_VALIDITY_MIN_MINUTES']} "
                f"and {config['QR_VALIDITY_MAX_MINUTES']}"
            )

        location_required = Validator.parse_bool(data.get('locationRequired'), 'locationRequired')
        latitude = longitude = radius = None
        if location_required:
            latitude = Validator.parse_float(data.get('campusLatitude'), 'campusLatitude')
            longitude = Validator.parse_float(data.get('campusLongitude'), 'campusLongitude')
            if latitude is None or longitude is None:
                errors.append("campusLatitude and campusLongitude are required when location is required")
            else:
                errors.extend(Validator.validate_coordinates(latitude, longitude))

            radius = data.get('campusRadiusMeters')
            radius = config['CAMPUS_RADIUS_DEFAULT_METERS'] if radius is None \
                else Validator.parse_int(radius, 'campusRadiusMeters')
            if not config['CAMPUS_RADIUS_MIN_METERS'] <= radius <= config['CAMPUS_RADIUS_MAX_METERS']:
                errors.append(
                    f"campusRadiusMeters must be between {config['CAMPUS_RADIUS_MIN_METERS']} "
                    f"and {config['CAMPUS_RADIUS_MAX_METERS']}"
                )

        if errors:
            raise ValidationError(errors=errors)

        session = AttendanceSession(
            module_id=module.id,
            teacher_id=teacher.id,
            session_date=session_date,
            start_time=start_time,
            end_time=end_time,
            classroom=str(data['classroom']).strip(),
            qr_validity_minutes=validity,
            status=SessionStatus.SCHEDULED,
            location_required=location_required,
            campus_latitude=latitude,
            campus_longitude=longitude,
            campus_radius_meters=radius,
            mandatory_attendance=Validator.parse_bool(
                data.get('mandatoryAttendance'), 'mandatoryAttendance', default=True
            )
        )
        session.save()

        logger.info('Created session %s for module %s by teacher %s',
                    session.id, module.module_code, teacher.id)
        return session

    @staticmethod
    def start_session(session_id: int, now: Optional[datetime] = None) -> AttendanceSession:
        """SCHEDULED -> ACTIVE; mints the QR token."""
        now = now or utcnow()
        try:
            session = SessionService.lock_session(session_id)
            if session.status != SessionStatus.SCHEDULED:
                raise InvalidTransition(
                    f"Cannot start a session that is {session.status.value}"
                )

            session.status = SessionStatus.ACTIVE
            session.started_at = now
            QRService.issue_token(session, now=now)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info('Session %s started', session.id)
        return session

    @staticmethod
    def complete_session(session_id: int, now: Optional[datetime] = None) -> AttendanceSession:
        """ACTIVE -> COMPLETED; revokes the QR token."""
        return SessionService._finish(session_id, SessionStatus.COMPLETED, now)

    @staticmethod
    def cancel_session(session_id: int, now: Optional[datetime] = None) -> AttendanceSession:
        """ACTIVE -> CANCELLED; revokes the QR token."""
        return SessionService._finish(session_id, SessionStatus.CANCELLED, now)

    @staticmethod
    def _finish(session_id: int, target: SessionStatus, now: Optional[datetime]) -> AttendanceSession:
        # Status change and revocation commit together under the row lock,
        # so a scan holding FOR SHARE either finishes first or sees the end state.
        now = now or utcnow()
        try:
            session = SessionService.lock_session(session_id)
            if session.status != SessionStatus.ACTIVE:
                raise InvalidTransition(
                    f"Cannot mark a {session.status.value} session as {target.value}"
                )

            session.status = target
            session.ended_at = now
            QRService.revoke_token(session, now=now)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info('Session %s %s', session.id, target.value.lower())
        return session

    @staticmethod
    def get_qr_token(session_id: int) -> AttendanceSession:
        """Return the ACTIVE session whose live token should be displayed."""
        session = SessionService.get_session(session_id)
        if not session.is_active():
            raise SessionNotActive(
                f"QR code is only available while the session is ACTIVE (currently {session.status.value})"
            )

        if not session.has_live_token():
            try:
                QRService.issue_token(session)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

        return session

    @staticmethod
    def sessions_for_teacher(teacher_id: int) -> List[AttendanceSession]:
        return (
            AttendanceSession.query
            .filter_by(teacher_id=teacher_id)
            .order_by(AttendanceSession.session_date.desc(), AttendanceSession.start_time.desc())
            .all()
        )

    @staticmethod
    def today_sessions_for_teacher(teacher_id: int, today: Optional[date] = None) -> List[AttendanceSession]:
        today = today or utcnow().date()
        return (
            AttendanceSession.query
            .filter_by(teacher_id=teacher_id, session_date=today)
            .order_by(AttendanceSession.start_time)
            .all()
        )

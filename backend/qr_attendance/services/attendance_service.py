"""Scan admission: turns a QR scan into exactly one attendance record."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.models.attendance_session import AttendanceSession, SessionStatus
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.gps_service import GPSService
from qr_attendance.services.qr_service import QRService
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils.errors import (
    AlreadyMarked, AttendanceError, NotFound, SessionNotActive, ValidationError
)
from qr_attendance.utils.helpers import utcnow
from qr_attendance.utils.validators import Validator

logger = logging.getLogger(__name__)

class AttendanceService:
    """Service for admitting QR scans."""

    @staticmethod
    def derive_status(session: AttendanceSession, marked_at: datetime) -> AttendanceStatus:
        """PRESENT inside the grace window, LATE past the threshold or after the scheduled end."""
        if marked_at > session.scheduled_end:
            return AttendanceStatus.LATE

        threshold = current_app.config.get('LATE_THRESHOLD_MINUTES')
        if threshold is not None and marked_at > session.scheduled_start + timedelta(minutes=threshold):
            return AttendanceStatus.LATE

        return AttendanceStatus.PRESENT

    @staticmethod
    def admit_scan(qr_token: str, student_id: int,
                   device_info: Optional[str] = None,
                   latitude: Optional[float] = None,
                   longitude: Optional[float] = None,
                   now: Optional[datetime] = None) -> AttendanceRecord:
        """Validate a scan and record attendance once per (session, student).

        Raises InvalidToken, SessionNotActive, OutsideCampusRadius (or
        LocationRequired), AlreadyMarked, NotFound or ValidationError.
        Nothing is written unless every check passes.
        """
        now = now or utcnow()

        try:
            claims = QRService.validate_token(qr_token, now=now)

            # Status is re-read under a shared lock after the token check;
            # a racing complete/cancel must wait for this transaction.
            session = SessionService.lock_session(claims.session_id, read=True)
            if session.status != SessionStatus.ACTIVE:
                raise SessionNotActive(
                    f"Attendance session is {session.status.value}, scans are no longer accepted"
                )

            student = db.session.get(User, student_id)
            if student is None or not student.active:
                raise NotFound("Student not found")
            if student.role != UserRole.STUDENT:
                raise ValidationError("Only students can mark attendance")

            GPSService.verify_location(session, latitude, longitude)

            existing = AttendanceRecord.query.filter_by(
                session_id=session.id,
                student_id=student.id
            ).first()
            if existing:
                raise AlreadyMarked(
                    f"Attendance already marked at {existing.marked_at.strftime('%H:%M')} "
                    f"as {existing.status.value}"
                )

            record = AttendanceRecord(
                session_id=session.id,
                student_id=student.id,
                marked_at=now,
                status=AttendanceService.derive_status(session, now),
                device_info=str(device_info)[:512] if device_info else None,
                latitude=latitude,
                longitude=longitude
            )
            db.session.add(record)
            db.session.commit()

        except IntegrityError:
            # Lost the race against a concurrent scan by the same student.
            db.session.rollback()
            logger.info('Duplicate scan rejected for student %s', student_id)
            raise AlreadyMarked()
        except AlreadyMarked:
            db.session.rollback()
            logger.info('Duplicate scan rejected for student %s', student_id)
            raise
        except AttendanceError as e:
            db.session.rollback()
            logger.warning('Scan rejected for student %s: %s (%s)', student_id, e.code, e.message)
            raise
        except Exception:
            db.session.rollback()
            raise

        logger.info('Admitted student %s to session %s as %s',
                    student.id, session.id, record.status.value)
        return record

    @staticmethod
    def admit_scan_request(data) -> AttendanceRecord:
        """Parse a ``/attendance/scan`` body and admit it."""
        data = Validator.require_json(data)

        errors = Validator.validate_required_fields(data, ['qrToken', 'studentId'])
        if errors:
            raise ValidationError(errors=errors)

        latitude = Validator.parse_float(data.get('latitude'), 'latitude')
        longitude = Validator.parse_float(data.get('longitude'), 'longitude')
        errors = Validator.validate_coordinates(latitude, longitude)
        if errors:
            raise ValidationError(errors=errors)

        return AttendanceService.admit_scan(
            qr_token=str(data['qrToken']),
            student_id=Validator.parse_int(data['studentId'], 'studentId'),
            device_info=data.get('deviceInfo'),
            latitude=latitude,
            longitude=longitude
        )

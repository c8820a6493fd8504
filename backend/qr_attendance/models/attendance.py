"""Attendance record written by a successful QR scan."""
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel
from qr_attendance.utils.helpers import isoformat, utcnow

class AttendanceStatus(Enum):
    """Attendance outcome. ABSENT is only ever inferred, never stored."""
    PRESENT = 'PRESENT'
    LATE = 'LATE'
    ABSENT = 'ABSENT'

class AttendanceRecord(BaseModel):
    """Attendance record model. Immutable once written."""

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )

    session_id = db.Column(db.Integer, db.ForeignKey('attendance_sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    marked_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False)
    device_info = db.Column(db.String(512), nullable=True)

    # Location where the scan happened
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Relationships
    session = db.relationship('AttendanceSession', back_populates='records')
    student = db.relationship('User', back_populates='attendance_records')

    def to_dict(self, exclude: list = None) -> dict:
        return {
            'id': self.id,
            'sessionId': self.session_id,
            'student': self.student.to_dict() if self.student else None,
            'markedAt': isoformat(self.marked_at),
            'status': self.status.value,
            'deviceInfo': self.device_info,
            'latitude': self.latitude,
            'longitude': self.longitude
        }

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.session_id}>'

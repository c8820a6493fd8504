"""Attendance session with its QR token and lifecycle state."""
from datetime import datetime
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class SessionStatus(Enum):
    """Session lifecycle states."""
    SCHEDULED = 'SCHEDULED'
    ACTIVE = 'ACTIVE'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'

class AttendanceSession(BaseModel):
    """Session for tracking attendance with QR codes."""

    __tablename__ = 'attendance_sessions'

    module_id = db.Column(db.Integer, db.ForeignKey('modules.id'), nullable=False, index=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Schedule
    session_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    classroom = db.Column(db.String(100), nullable=False)
    qr_validity_minutes = db.Column(db.Integer, nullable=False, default=15)
    status = db.Column(db.Enum(SessionStatus), nullable=False, default=SessionStatus.SCHEDULED)
    mandatory_attendance = db.Column(db.Boolean, nullable=False, default=True)

    # Geofence, set only when location_required
    location_required = db.Column(db.Boolean, nullable=False, default=False)
    campus_latitude = db.Column(db.Float, nullable=True)
    campus_longitude = db.Column(db.Float, nullable=True)
    campus_radius_meters = db.Column(db.Integer, nullable=True)

    # QR token
    qr_token = db.Column(db.String(512), unique=True, nullable=True)
    qr_expires_at = db.Column(db.DateTime, nullable=True)
    token_revoked_at = db.Column(db.DateTime, nullable=True)

    # Lifecycle stamps
    started_at = db.Column(db.DateTime, nullable=True)
    ended_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    module = db.relationship('Module', back_populates='sessions')
    teacher = db.relationship('User')
    records = db.relationship(
        'AttendanceRecord',
        back_populates='session',
        lazy='dynamic',
        order_by='AttendanceRecord.marked_at'
    )

    @property
    def scheduled_start(self) -> datetime:
        return datetime.combine(self.session_date, self.start_time)

    @property
    def scheduled_end(self) -> datetime:
        return datetime.combine(self.session_date, self.end_time)

    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def has_live_token(self) -> bool:
        """Token minted and not revoked. Time-based expiry is not considered."""
        return self.qr_token is not None and self.token_revoked_at is None

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary. Token columns never leave the server here."""
        hidden = ['module_id', 'teacher_id', 'qr_token', 'token_revoked_at', 'updated_at']
        result = super().to_dict(exclude=(exclude or []) + hidden)
        result['module'] = self.module.to_dict() if self.module else None
        result['teacher'] = self.teacher.to_dict() if self.teacher else None
        return result

    def __repr__(self) -> str:
        return f'<AttendanceSession {self.id} {self.status.value if self.status else None}>'

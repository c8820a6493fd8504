"""User model for teachers and students."""
from enum import Enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    TEACHER = 'TEACHER'
    STUDENT = 'STUDENT'

class User(BaseModel):
    """User model for all system users. The role never changes after creation."""

    __tablename__ = 'users'

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT)
    microsoft_id = db.Column(db.String(255), unique=True, nullable=True)
    active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    modules = db.relationship('Module', back_populates='teacher', lazy='dynamic')
    attendance_records = db.relationship('AttendanceRecord', back_populates='student', lazy='dynamic')

    def __repr__(self) -> str:
        return f'<User {self.email}>'

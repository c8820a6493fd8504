"""Teaching module owned by a teacher."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class Module(BaseModel):
    """Course module. ``module_code`` is unique per teacher."""

    __tablename__ = 'modules'
    __table_args__ = (
        db.UniqueConstraint('teacher_id', 'module_code', name='uq_module_teacher_code'),
    )

    module_code = db.Column(db.String(50), nullable=False, index=True)
    module_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    active = db.Column(db.Boolean, default=True, nullable=False)

    # Relationships
    teacher = db.relationship('User', back_populates='modules')
    sessions = db.relationship('AttendanceSession', back_populates='module', lazy='dynamic')

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary with the owning teacher embedded."""
        result = super().to_dict(exclude=(exclude or []) + ['teacher_id', 'updated_at'])
        result['teacher'] = self.teacher.to_dict() if self.teacher else None
        return result

    def __repr__(self) -> str:
        return f'<Module {self.module_code}>'

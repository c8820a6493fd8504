"""Custom decorators for request validation."""
from functools import wraps
from flask import g, request
from qr_attendance import db
from qr_attendance.models.user import User, UserRole
from qr_attendance.utils.errors import NotFound, ValidationError

def teacher_required(f):
    """Resolve ``?teacherId=`` to an active teacher and expose it as ``g.teacher``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        teacher_id = request.args.get('teacherId', type=int)
        if teacher_id is None:
            raise ValidationError("teacherId query parameter is required")

        user = db.session.get(User, teacher_id)
        if not user or not user.active:
            raise NotFound("Teacher not found")

        if user.role != UserRole.TEACHER:
            raise ValidationError("Only teachers can manage sessions")

        g.teacher = user
        return f(*args, **kwargs)
    return decorated_function

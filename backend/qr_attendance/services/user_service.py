"""User and module management service."""
import logging
from typing import Dict, List

from sqlalchemy.exc import IntegrityError

from qr_attendance import db
from qr_attendance.models.module import Module
from qr_attendance.models.user import User, UserRole
from qr_attendance.utils.errors import Conflict, NotFound, ValidationError
from qr_attendance.utils.validators import Validator

logger = logging.getLogger(__name__)

class UserService:
    """Service for managing users and their modules."""

    @staticmethod
    def create_user(data: Dict) -> User:
        data = Validator.require_json(data)

        errors = Validator.validate_required_fields(data, ['email', 'firstName', 'lastName', 'role'])
        if errors:
            raise ValidationError(errors=errors)

        email = str(data['email']).strip().lower()
        if not Validator.validate_email(email):
            errors.append("Invalid email format")
        errors.extend(Validator.validate_name(data['firstName'], 'firstName'))
        errors.extend(Validator.validate_name(data['lastName'], 'lastName'))

        try:
            role = UserRole(str(data['role']).upper())
        except ValueError:
            role = None
            errors.append("role must be TEACHER or STUDENT")

        if errors:
            raise ValidationError(errors=errors)

        if User.query.filter_by(email=email).first():
            raise Conflict("A user with this email already exists")

        user = User(
            email=email,
            first_name=data['firstName'].strip(),
            last_name=data['lastName'].strip(),
            role=role,
            microsoft_id=data.get('microsoftId') or None
        )

        try:
            user.save()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("A user with this email or Microsoft ID already exists")

        logger.info('Created %s %s', role.value.lower(), email)
        return user

    @staticmethod
    def get_user(user_id: int) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    @staticmethod
    def list_users(role: UserRole = None) -> List[User]:
        query = User.query
        if role is not None:
            query = query.filter_by(role=role, active=True)
        return query.order_by(User.last_name, User.first_name).all()

    @staticmethod
    def create_module(data: Dict) -> Module:
        data = Validator.require_json(data)

        errors = Validator.validate_required_fields(data, ['moduleCode', 'moduleName', 'teacherId'])
        if errors:
            raise ValidationError(errors=errors)

        teacher = db.session.get(User, Validator.parse_int(data['teacherId'], 'teacherId'))
        if teacher is None or not teacher.active:
            raise NotFound("Teacher not found")
        if teacher.role != UserRole.TEACHER:
            raise ValidationError("Modules can only be assigned to teachers")

        module_code = str(data['moduleCode']).strip().upper()
        if Module.query.filter_by(teacher_id=teacher.id, module_code=module_code).first():
            raise Conflict(f"Module {module_code} already exists for this teacher")

        module = Module(
            module_code=module_code,
            module_name=str(data['moduleName']).strip(),
            description=data.get('description') or None,
            teacher_id=teacher.id
        )

        try:
            module.save()
        except IntegrityError:
            db.session.rollback()
            raise Conflict(f"Module {module_code} already exists for this teacher")

        logger.info('Created module %s for teacher %s', module_code, teacher.id)
        return module

    @staticmethod
    def list_modules(teacher_id: int = None) -> List[Module]:
        query = Module.query.filter_by(active=True)
        if teacher_id is not None:
            query = query.filter_by(teacher_id=teacher_id)
        return query.order_by(Module.module_code).all()

"""Database seeding service for demo data."""
from qr_attendance.models.module import Module
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.user_service import UserService

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all() -> dict:
        """Seed a teacher, a student and one module. Safe to run twice."""
        teacher = SeedService._user('teacher@university.edu', 'Aoife', 'Byrne', UserRole.TEACHER)
        student = SeedService._user('student@university.edu', 'Cian', 'Murphy', UserRole.STUDENT)

        module = Module.query.filter_by(teacher_id=teacher.id, module_code='CS101').first()
        if module is None:
            module = UserService.create_module({
                'moduleCode': 'CS101',
                'moduleName': 'Introduction to Programming',
                'teacherId': teacher.id
            })

        return {'teacher': teacher.email, 'student': student.email, 'module': module.module_code}

    @staticmethod
    def _user(email: str, first_name: str, last_name: str, role: UserRole) -> User:
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = UserService.create_user({
                'email': email,
                'firstName': first_name,
                'lastName': last_name,
                'role': role.value
            })
        return user

"""QR Attendance Backend - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

__version__ = '1.0.0'

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None, test_config: dict = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from qr_attendance.config import get_config
    app.config.from_object(get_config(config_name))
    if test_config:
        app.config.update(test_config)

    # Tokens are encrypted with this key material
    if not app.debug and not app.testing and not (
            app.config.get('QR_TOKEN_SECRET') or app.config.get('SECRET_KEY')):
        raise RuntimeError('SECRET_KEY or QR_TOKEN_SECRET must be set')

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Attendance Backend',
            'version': __version__
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.users import users_bp
    from qr_attendance.api.modules import modules_bp
    from qr_attendance.api.sessions import sessions_bp
    from qr_attendance.api.attendance import attendance_bp

    # Directory
    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(modules_bp, url_prefix='/modules')

    # Core Features
    app.register_blueprint(sessions_bp, url_prefix='/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/attendance')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from werkzeug.exceptions import HTTPException
    from qr_attendance.utils.errors import AttendanceError
    from qr_attendance.utils.helpers import handle_error, error_response

    @app.errorhandler(AttendanceError)
    def handle_attendance_error(error):
        return error_response(
            error.message,
            error.status_code,
            code=error.code,
            details=error.details
        )

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', error)
        return handle_error('Internal server error', 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'))
    logging.getLogger('qr_attendance').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('qr_attendance').addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('QR Attendance Backend startup')

def setup_database(app: Flask) -> None:
    """Import models so their tables are registered on the metadata."""
    with app.app_context():
        from qr_attendance.models import (  # noqa: F401
            User, UserRole, Module,
            AttendanceSession, SessionStatus,
            AttendanceRecord, AttendanceStatus
        )
        if app.config.get('AUTO_CREATE_TABLES'):
            db.create_all()

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with demo data."""
        from qr_attendance.services.seed_service import SeedService

        summary = SeedService.seed_all()
        click.echo(
            f"Seeded teacher {summary['teacher']}, student {summary['student']}, "
            f"module {summary['module']}"
        )

    @app.cli.command('create-user')
    @click.option('--role', type=click.Choice(['TEACHER', 'STUDENT']), prompt=True)
    def create_user(role):
        """Create a teacher or student."""
        from qr_attendance.services.user_service import UserService
        from qr_attendance.utils.errors import AttendanceError

        email = click.prompt('Email')
        first_name = click.prompt('First name')
        last_name = click.prompt('Last name')

        try:
            user = UserService.create_user({
                'email': email,
                'firstName': first_name,
                'lastName': last_name,
                'role': role
            })
            click.echo(f'User created: {user.email} (id={user.id})')
        except AttendanceError as e:
            click.echo(f'Error creating user: {e.message}')

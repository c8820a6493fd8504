"""Attendance session API: lifecycle and QR codes."""
import io
from flask import Blueprint, current_app, g, jsonify, request, send_file
from qr_attendance import limiter
from qr_attendance.services.qr_service import QRService
from qr_attendance.services.session_service import SessionService
from qr_attendance.services.user_service import UserService
from qr_attendance.utils.decorators import teacher_required
from qr_attendance.utils.helpers import isoformat, success_response

sessions_bp = Blueprint('sessions', __name__)

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Session service is running')

@sessions_bp.route('', methods=['POST'])
@teacher_required
@limiter.limit(lambda: current_app.config['RATELIMIT_WRITE_LIMIT'])
def create_session():
    """Create a SCHEDULED session for ``?teacherId=``."""
    session = SessionService.create_session(g.teacher, request.get_json(silent=True))
    return jsonify(session.to_dict()), 201

@sessions_bp.route('/<int:session_id>', methods=['GET'])
def get_session(session_id):
    return jsonify(SessionService.get_session(session_id).to_dict())

@sessions_bp.route('/<int:session_id>/start', methods=['PUT'])
def start_session(session_id):
    session = SessionService.start_session(session_id)
    current_app.logger.info('Session %s started via API', session_id)
    return jsonify(session.to_dict())

@sessions_bp.route('/<int:session_id>/complete', methods=['PUT'])
def complete_session(session_id):
    session = SessionService.complete_session(session_id)
    current_app.logger.info('Session %s completed via API', session_id)
    return jsonify(session.to_dict())

@sessions_bp.route('/<int:session_id>/cancel', methods=['PUT'])
def cancel_session(session_id):
    session = SessionService.cancel_session(session_id)
    current_app.logger.info('Session %s cancelled via API', session_id)
    return jsonify(session.to_dict())

@sessions_bp.route('/<int:session_id>/qr', methods=['GET'])
def get_qr_image(session_id):
    """PNG QR code of the session's current token."""
    session = SessionService.get_qr_token(session_id)
    png = QRService.render_qr_png(session.qr_token)

    response = send_file(
        io.BytesIO(png),
        mimetype='image/png',
        download_name=f'session_{session_id}_qr.png'
    )
    response.headers['Cache-Control'] = 'no-store'
    return response

@sessions_bp.route('/<int:session_id>/qr-data', methods=['GET'])
def get_qr_data(session_id):
    session = SessionService.get_qr_token(session_id)
    return jsonify({
        'qrToken': session.qr_token,
        'expiresAt': isoformat(session.qr_expires_at)
    })

@sessions_bp.route('/teacher/<int:teacher_id>', methods=['GET'])
def get_teacher_sessions(teacher_id):
    UserService.get_user(teacher_id)
    sessions = SessionService.sessions_for_teacher(teacher_id)
    return jsonify([session.to_dict() for session in sessions])

@sessions_bp.route('/teacher/<int:teacher_id>/today', methods=['GET'])
def get_today_sessions(teacher_id):
    UserService.get_user(teacher_id)
    sessions = SessionService.today_sessions_for_teacher(teacher_id)
    return jsonify([session.to_dict() for session in sessions])

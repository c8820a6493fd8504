"""User directory API."""
from flask import Blueprint, current_app, jsonify, request
from qr_attendance import limiter
from qr_attendance.models.user import UserRole
from qr_attendance.services.user_service import UserService

users_bp = Blueprint('users', __name__)

@users_bp.route('', methods=['POST'])
@limiter.limit(lambda: current_app.config['RATELIMIT_WRITE_LIMIT'])
def create_user():
    """Create a teacher or student."""
    user = UserService.create_user(request.get_json(silent=True))
    return jsonify(user.to_dict()), 201

@users_bp.route('', methods=['GET'])
def get_users():
    return jsonify([user.to_dict() for user in UserService.list_users()])

@users_bp.route('/teachers', methods=['GET'])
def get_teachers():
    return jsonify([user.to_dict() for user in UserService.list_users(UserRole.TEACHER)])

@users_bp.route('/students', methods=['GET'])
def get_students():
    return jsonify([user.to_dict() for user in UserService.list_users(UserRole.STUDENT)])

@users_bp.route('/<int:user_id>', methods=['GET'])
def get_user(user_id):
    return jsonify(UserService.get_user(user_id).to_dict())

"""Module API."""
from flask import Blueprint, current_app, jsonify, request
from qr_attendance import limiter
from qr_attendance.services.user_service import UserService

modules_bp = Blueprint('modules', __name__)

@modules_bp.route('', methods=['POST'])
@limiter.limit(lambda: current_app.config['RATELIMIT_WRITE_LIMIT'])
def create_module():
    """Create a module owned by ``teacherId``."""
    module = UserService.create_module(request.get_json(silent=True))
    return jsonify(module.to_dict()), 201

@modules_bp.route('', methods=['GET'])
def get_modules():
    return jsonify([module.to_dict() for module in UserService.list_modules()])

@modules_bp.route('/teacher/<int:teacher_id>', methods=['GET'])
def get_modules_by_teacher(teacher_id):
    UserService.get_user(teacher_id)
    return jsonify([module.to_dict() for module in UserService.list_modules(teacher_id)])

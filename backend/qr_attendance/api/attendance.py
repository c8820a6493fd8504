"""Attendance API: QR scans and read-only reports."""
import io
from flask import Blueprint, jsonify, request, send_file
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.services.report_service import ReportService
from qr_attendance.utils.helpers import success_response

attendance_bp = Blueprint('attendance', __name__)

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/scan', methods=['POST'])
def scan_qr():
    """Admit a QR scan and return the new attendance record."""
    record = AttendanceService.admit_scan_request(request.get_json(silent=True))
    return jsonify(record.to_dict()), 201

@attendance_bp.route('/session/<int:session_id>', methods=['GET'])
def get_session_attendance(session_id):
    return jsonify(ReportService.session_attendance(session_id))

@attendance_bp.route('/session/<int:session_id>/export', methods=['GET'])
def export_session_attendance(session_id):
    """Export session attendance as Excel."""
    content, filename = ReportService.export_session_excel(session_id)
    return send_file(
        io.BytesIO(content),
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )

@attendance_bp.route('/student/<int:student_id>', methods=['GET'])
def get_student_attendance(student_id):
    return jsonify(ReportService.student_attendance(student_id))

@attendance_bp.route('/student/<int:student_id>/module/<int:module_id>', methods=['GET'])
def get_student_module_attendance(student_id, module_id):
    return jsonify(ReportService.student_module_attendance(student_id, module_id))

@attendance_bp.route('/student/<int:student_id>/percentage', methods=['GET'])
def get_attendance_percentage(student_id):
    return jsonify({'percentage': ReportService.attendance_percentage(student_id)})

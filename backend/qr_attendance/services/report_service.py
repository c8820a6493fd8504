"""Read-only attendance reporting and Excel export."""
import io
from typing import Dict, List, Tuple

import pandas as pd

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.models.attendance_session import AttendanceSession, SessionStatus
from qr_attendance.models.module import Module
from qr_attendance.models.user import User, UserRole
from qr_attendance.services.session_service import SessionService
from qr_attendance.utils.errors import NotFound
from qr_attendance.utils.helpers import isoformat

class ReportService:
    """Aggregations over attendance records.

    ABSENT is never stored. For a COMPLETED mandatory session it is inferred
    for every student on the module roster (active students with at least one
    record in any session of the module) who has no record for that session.
    """

    @staticmethod
    def _student(student_id: int) -> User:
        student = db.session.get(User, student_id)
        if student is None or student.role != UserRole.STUDENT:
            raise NotFound("Student not found")
        return student

    @staticmethod
    def module_roster(module_id: int) -> List[User]:
        return (
            User.query
            .join(AttendanceRecord, AttendanceRecord.student_id == User.id)
            .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
            .filter(AttendanceSession.module_id == module_id)
            .filter(User.role == UserRole.STUDENT, User.active.is_(True))
            .distinct()
            .order_by(User.last_name, User.first_name)
            .all()
        )

    @staticmethod
    def infers_absence(session: AttendanceSession) -> bool:
        return session.status == SessionStatus.COMPLETED and session.mandatory_attendance

    @staticmethod
    def absent_entry(session: AttendanceSession, student: User) -> Dict:
        return {
            'id': None,
            'sessionId': session.id,
            'student': student.to_dict(),
            'markedAt': None,
            'status': AttendanceStatus.ABSENT.value,
            'deviceInfo': None,
            'latitude': None,
            'longitude': None
        }

    @staticmethod
    def session_attendance(session_id: int) -> List[Dict]:
        """Records of a session, plus inferred ABSENT entries once it is completed."""
        session = SessionService.get_session(session_id)
        records = session.records.all()
        result = [record.to_dict() for record in records]

        if ReportService.infers_absence(session):
            marked = {record.student_id for record in records}
            result.extend(
                ReportService.absent_entry(session, student)
                for student in ReportService.module_roster(session.module_id)
                if student.id not in marked
            )

        return result

    @staticmethod
    def student_attendance(student_id: int) -> List[Dict]:
        student = ReportService._student(student_id)
        records = (
            student.attendance_records
            .order_by(AttendanceRecord.marked_at.desc())
            .all()
        )
        return [record.to_dict() for record in records]

    @staticmethod
    def student_module_attendance(student_id: int, module_id: int) -> List[Dict]:
        """Every session of the module the student attended, or missed once completed."""
        student = ReportService._student(student_id)
        if db.session.get(Module, module_id) is None:
            raise NotFound("Module not found")

        records = (
            AttendanceRecord.query
            .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
            .filter(AttendanceRecord.student_id == student.id)
            .filter(AttendanceSession.module_id == module_id)
            .order_by(AttendanceSession.session_date, AttendanceSession.start_time)
            .all()
        )
        entries = [(record.session, record.to_dict()) for record in records]

        if records:
            marked = {record.session_id for record in records}
            for session in ReportService._completed_mandatory_sessions([module_id]):
                if session.id not in marked:
                    entries.append((session, ReportService.absent_entry(session, student)))

        # Chronological by schedule
        entries.sort(key=lambda entry: (entry[0].session_date, entry[0].start_time, entry[0].id))
        return [entry for _, entry in entries]

    @staticmethod
    def _completed_mandatory_sessions(module_ids: List[int]) -> List[AttendanceSession]:
        if not module_ids:
            return []
        return (
            AttendanceSession.query
            .filter(AttendanceSession.module_id.in_(module_ids))
            .filter(AttendanceSession.status == SessionStatus.COMPLETED)
            .filter(AttendanceSession.mandatory_attendance.is_(True))
            .all()
        )

    @staticmethod
    def attendance_percentage(student_id: int) -> float:
        """Share of completed mandatory sessions attended, over the student's modules."""
        student = ReportService._student(student_id)

        module_ids = [
            row[0] for row in db.session.query(AttendanceSession.module_id)
            .join(AttendanceRecord, AttendanceRecord.session_id == AttendanceSession.id)
            .filter(AttendanceRecord.student_id == student.id)
            .distinct()
        ]
        sessions = ReportService._completed_mandatory_sessions(module_ids)
        if not sessions:
            return 0.0

        attended = (
            AttendanceRecord.query
            .filter(AttendanceRecord.student_id == student.id)
            .filter(AttendanceRecord.session_id.in_([s.id for s in sessions]))
            .filter(AttendanceRecord.status.in_([AttendanceStatus.PRESENT, AttendanceStatus.LATE]))
            .count()
        )
        return round(attended / len(sessions) * 100, 2)

    @staticmethod
    def export_session_excel(session_id: int) -> Tuple[bytes, str]:
        """Build the session's attendance workbook. Returns (content, filename)."""
        session = SessionService.get_session(session_id)
        entries = ReportService.session_attendance(session_id)

        rows = []
        for entry in entries:
            student = entry['student'] or {}
            rows.append({
                'Student ID': student.get('id'),
                'First Name': student.get('firstName'),
                'Last Name': student.get('lastName'),
                'Email': student.get('email'),
                'Status': entry['status'],
                'Marked At': entry['markedAt'],
                'Device': entry['deviceInfo'],
                'Latitude': entry['latitude'],
                'Longitude': entry['longitude']
            })
        attendance_df = pd.DataFrame(rows, columns=[
            'Student ID', 'First Name', 'Last Name', 'Email', 'Status',
            'Marked At', 'Device', 'Latitude', 'Longitude'
        ])

        counts = {status.value: 0 for status in AttendanceStatus}
        for entry in entries:
            counts[entry['status']] += 1

        summary_df = pd.DataFrame([{
            'Module Code': session.module.module_code,
            'Module Name': session.module.module_name,
            'Classroom': session.classroom,
            'Date': isoformat(session.session_date),
            'Start': isoformat(session.start_time),
            'End': isoformat(session.end_time),
            'Status': session.status.value,
            'Present': counts['PRESENT'],
            'Late': counts['LATE'],
            'Absent': counts['ABSENT']
        }])

        excel_buffer = io.BytesIO()
        with pd.ExcelWriter(excel_buffer, engine='openpyxl') as writer:
            attendance_df.to_excel(writer, sheet_name='Attendance', index=False)
            summary_df.to_excel(writer, sheet_name='Summary', index=False)

        filename = (
            f"attendance_{session.module.module_code}_"
            f"{session.session_date.strftime('%Y%m%d')}_session{session.id}.xlsx"
        )
        return excel_buffer.getvalue(), filename

"""Attendance API endpoints behind the shared student link."""
from flask import Blueprint, current_app, request
from flask_limiter.util import get_remote_address
from rollcall import limiter
from rollcall.services.attendance_service import Student, Submission
from rollcall.utils.helpers import get_attendance_service, success_response
from rollcall.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)

def _submit_limit():
    return current_app.config.get('ATTENDANCE_SUBMIT_LIMIT', '10 per minute')

@attendance_bp.route('/<token>', methods=['GET'])
def attendance_view(token):
    """Session information and window state for the student page."""
    service = get_attendance_service()
    session = service.get_session_by_token(token)
    view = service.session_view(session)
    return success_response(data={
        'session_id': session.id,
        'subject_name': view.get('subject_name'),
        'scheduled_at': view['scheduled_at'],
        'is_active': session.is_active,
        'window': view['window'],
        'timer': view['timer']
    })

@attendance_bp.route('/<token>', methods=['POST'])
@limiter.limit(_submit_limit)
def submit_attendance(token):
    """Mark attendance for one student."""
    data = request.get_json(silent=True) or {}
    name, student_id = Validator.normalize_student(data.get('student_name'), data.get('student_id'))

    service = get_attendance_service()
    session = service.get_session_by_token(token)
    
    device = data.get('device')
    record = service.submit_attendance(
        session,
        Student(name=name, student_id=student_id),
        Submission(
            network_address=get_remote_address(),
            device_signals=device if isinstance(device, dict) else {},
            user_agent=request.headers.get('User-Agent')
        )
    )
    return success_response(
        data={
            'student_id': record.student_id,
            'student_name': record.student_name,
            'marked_at': record.marked_at.isoformat()
        },
        message="Attendance marked successfully!",
        status_code=201
    )

"""Class session API endpoints for instructors."""
from flask import Blueprint, request
from rollcall.utils.helpers import error_response, get_attendance_service, success_response
from rollcall.utils.validators import Validator

sessions_bp = Blueprint('sessions', __name__)

@sessions_bp.route('', methods=['POST'])
def create_session():
    """Create a session and return its attendance link."""
    data = request.get_json(silent=True) or {}
    Validator.validate_required_fields(data, ['subject_id'])
    
    service = get_attendance_service()
    session = service.create_session(
        subject_id=data['subject_id'],
        session_date=data.get('session_date'),
        session_time=data.get('session_time'),
        duration_minutes=data.get('duration_minutes')
    )
    
    payload = service.session_view(session)
    payload['attendance_url'] = service.issue_session_link(session)
    return success_response(
        data=payload,
        message="Session created successfully",
        status_code=201
    )

@sessions_bp.route('/<int:session_id>', methods=['GET'])
def get_session(session_id):
    """Get one session with its window and timer state."""
    service = get_attendance_service()
    return success_response(data=service.session_view(service.get_session(session_id)))

@sessions_bp.route('/<int:session_id>/toggle', methods=['POST'])
def toggle_session(session_id):
    """Activate or deactivate a session."""
    data = request.get_json(silent=True) or {}
    if 'active' not in data or not isinstance(data['active'], bool):
        return error_response("Field 'active' (true or false) is required", 400)
    
    service = get_attendance_service()
    session = service.toggle_session(session_id, data['active'])
    return success_response(
        data=service.session_view(session),
        message=f"Session {'activated' if data['active'] else 'deactivated'} successfully"
    )

@sessions_bp.route('/<int:session_id>/link', methods=['GET'])
def session_link(session_id):
    """Attendance URL to share with students."""
    service = get_attendance_service()
    session = service.get_session(session_id)
    return success_response(data={
        'session_token': session.session_token,
        'attendance_url': service.issue_session_link(session)
    })

@sessions_bp.route('/<int:session_id>/attendance', methods=['GET'])
def session_attendance(session_id):
    """Records for a session, with devices shared between students."""
    return success_response(data=get_attendance_service().session_attendance(session_id))

@sessions_bp.route('/sweep', methods=['POST'])
def sweep():
    """Run one auto-close pass now."""
    closed = get_attendance_service().run_sweep_once()
    return success_response(
        data={'closed_count': closed},
        message=f"{closed} expired session(s) auto-closed"
    )

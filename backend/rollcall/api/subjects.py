"""Subject API endpoints."""
from flask import Blueprint, request
from rollcall.utils.helpers import get_attendance_service, success_response

subjects_bp = Blueprint('subjects', __name__)

@subjects_bp.route('', methods=['POST'])
def create_subject():
    """Create a subject."""
    data = request.get_json(silent=True) or {}
    subject = get_attendance_service().create_subject(
        data.get('name'),
        data.get('description')
    )
    return success_response(
        data=subject.to_dict(),
        message="Subject created successfully",
        status_code=201
    )

@subjects_bp.route('', methods=['GET'])
def list_subjects():
    """List all subjects."""
    subjects = get_attendance_service().list_subjects()
    return success_response(data=[s.to_dict() for s in subjects])

@subjects_bp.route('/<int:subject_id>/sessions', methods=['GET'])
def list_subject_sessions(subject_id):
    """List sessions of a subject, newest first, with window and timer state."""
    service = get_attendance_service()
    sessions = service.list_sessions(subject_id)
    return success_response(data=[service.session_view(s) for s in sessions])

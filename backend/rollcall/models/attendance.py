"""Attendance model with anti-proxy details."""
from datetime import datetime
from rollcall import db
from rollcall.models.base import BaseModel

class AttendanceRecord(BaseModel):
    """Attendance record model."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )
    
    session_id = db.Column(db.Integer, db.ForeignKey('class_sessions.id'), nullable=False, index=True)
    student_id = db.Column(db.String(64), nullable=False)
    student_name = db.Column(db.String(255), nullable=False)
    marked_at = db.Column(db.DateTime, default=datetime.now, nullable=False)
    
    # Anti-proxy details
    ip_address = db.Column(db.String(64), nullable=True)
    browser_fingerprint = db.Column(db.String(16), nullable=True)
    user_agent = db.Column(db.Text, nullable=True)
    location_data = db.Column(db.Text, nullable=True)  # JSON from the network lookup
    
    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.session_id}>'

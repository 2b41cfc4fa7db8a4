"""Class session with a shareable attendance token."""
from datetime import datetime, time, timedelta
from typing import Optional
from rollcall import db
from rollcall.models.base import BaseModel

class ClassSession(BaseModel):
    """One scheduled class meeting that collects attendance."""
    
    __tablename__ = 'class_sessions'
    
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    session_date = db.Column(db.Date, nullable=False)
    session_time = db.Column(db.Time, nullable=True)
    session_token = db.Column(db.String(24), unique=True, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Auto-close timer; both set or both null
    duration_minutes = db.Column(db.Integer, nullable=True)
    auto_close_at = db.Column(db.DateTime, nullable=True)
    
    # Relationships
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')
    
    @property
    def scheduled_at(self) -> datetime:
        """Scheduled start; a missing time means midnight."""
        return datetime.combine(self.session_date, self.session_time or time(0, 0))
    
    @staticmethod
    def compute_auto_close(scheduled_at: datetime, duration_minutes: Optional[int]) -> Optional[datetime]:
        """Deadline for a session scheduled at `scheduled_at`."""
        if not duration_minutes:
            return None
        return scheduled_at + timedelta(minutes=duration_minutes)
    
    def to_dict(self):
        """Convert to dictionary."""
        data = super().to_dict()
        data['scheduled_at'] = self.scheduled_at.isoformat()
        if self.subject is not None:
            data['subject_name'] = self.subject.name
        return data
    
    def __repr__(self):
        return f'<ClassSession {self.session_token}>'

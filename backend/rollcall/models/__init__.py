"""Models package with all models."""
from .base import BaseModel
from .subject import Subject
from .class_session import ClassSession
from .attendance import AttendanceRecord

__all__ = [
    'BaseModel', 'Subject', 'ClassSession', 'AttendanceRecord'
]

"""Validation utilities for the application."""
from datetime import date, time
from typing import Dict, List, Optional, Tuple

from rollcall.utils.errors import ValidationError

MIN_DURATION_MINUTES = 1

class Validator:
    """Validation helper class."""
    
    @staticmethod
    def normalize_student(name: str, student_id: str) -> Tuple[str, str]:
        """Trim and upper-case a student's name and id."""
        name = (name or '').strip().upper()
        student_id = (student_id or '').strip().upper()
        
        if not name or not student_id:
            raise ValidationError("Please enter both name and student ID")
        
        return name, student_id
    
    @staticmethod
    def parse_date(value) -> date:
        """Parse an ISO date (YYYY-MM-DD)."""
        if isinstance(value, date):
            return value
        if not value:
            raise ValidationError("Please select both date and time")
        try:
            return date.fromisoformat(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid date: {value}. Use YYYY-MM-DD")
    
    @staticmethod
    def parse_time(value) -> time:
        """Parse a wall-clock time (HH:MM or HH:MM:SS)."""
        if isinstance(value, time):
            return value
        if not value:
            raise ValidationError("Please select both date and time")
        try:
            return time.fromisoformat(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid time: {value}. Use HH:MM")
    
    @staticmethod
    def validate_duration(value) -> Optional[int]:
        """Validate an optional auto-close duration in minutes."""
        if value in (None, '', 'none'):
            return None
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            raise ValidationError("Please enter a valid duration (minimum 1 minute)")
        if minutes < MIN_DURATION_MINUTES:
            raise ValidationError("Please enter a valid duration (minimum 1 minute)")
        return minutes
    
    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> None:
        """Raise if any required field is missing or empty."""
        errors = []
        
        for field in required_fields:
            if field not in data or not data[field]:
                errors.append(f"{field.replace('_', ' ').capitalize()} is required")
        
        if errors:
            raise ValidationError("; ".join(errors))

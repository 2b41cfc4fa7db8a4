"""Error taxonomy for attendance operations.

Every error carries an actionable, user-facing message and the HTTP status
the API layer renders it with.
"""
from datetime import timedelta
from typing import Any, Dict, Optional


class AttendanceError(Exception):
    """Base class for errors reported back to the caller."""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def details(self) -> Dict[str, Any]:
        """Extra fields for the error response body."""
        return {}


class ValidationError(AttendanceError):
    """Input rejected before any store call."""
    pass


class NotFoundError(AttendanceError):
    status_code = 404


class DuplicateSubmissionError(AttendanceError):
    """The student already has a record for this session."""

    status_code = 409

    def __init__(self, message: str = "Attendance already marked for this student."):
        super().__init__(message)


class StoreError(AttendanceError):
    """Store failure other than a token collision."""

    status_code = 500


class TokenCollisionError(StoreError):
    """The store rejected a session token as already taken."""
    pass


class TokenExhaustionError(AttendanceError):
    status_code = 503

    def __init__(self, attempts: int):
        super().__init__(
            f"Failed to generate unique session token after {attempts} attempts. "
            "Please try again in a moment."
        )
        self.attempts = attempts


class WindowClosedError(AttendanceError):
    """Submission outside the open window; the caller may check again later."""

    status_code = 403

    def __init__(self, reason: str, wait: Optional[timedelta] = None):
        self.reason = reason
        self.wait = wait
        if wait is not None:
            minutes = max(1, -(-int(wait.total_seconds()) // 60))
            message = (
                f"Attendance not yet available. Please wait {minutes} "
                f"minute{'s' if minutes != 1 else ''}; attendance opens 10 minutes "
                "before the scheduled session time."
            )
        else:
            message = "This session is no longer active. Please contact your instructor."
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        data = {'reason': self.reason}
        if self.wait is not None:
            data['wait_seconds'] = self.wait.total_seconds()
        return data


class SuspiciousSubmissionError(AttendanceError):
    status_code = 403

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            f"Suspicious activity detected: {reason}. "
            "Please contact your instructor if this is an error."
        )

    def details(self) -> Dict[str, Any]:
        return {'reason': self.reason}

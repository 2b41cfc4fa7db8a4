"""Attendance window gate."""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

GRACE_PERIOD = timedelta(minutes=10)

# A client re-checks this long after the window should have opened
RECHECK_MARGIN = timedelta(seconds=30)

TIMER_WARNING_THRESHOLD = timedelta(minutes=5)

REASON_OPEN = 'open'
REASON_NOT_YET_OPEN = 'not yet open'
REASON_INACTIVE = 'session inactive'


@dataclass(frozen=True)
class WindowStatus:
    open: bool
    opens_at: datetime
    reason: str
    wait: Optional[timedelta] = None
    
    @property
    def recheck_after(self) -> Optional[timedelta]:
        if self.wait is None:
            return None
        return self.wait + RECHECK_MARGIN
    
    def to_dict(self) -> Dict:
        return {
            'open': self.open,
            'opens_at': self.opens_at.isoformat(),
            'reason': self.reason,
            'wait_seconds': self.wait.total_seconds() if self.wait is not None else None,
            'recheck_after_seconds': (
                self.recheck_after.total_seconds() if self.recheck_after is not None else None
            )
        }


class WindowService:
    """Decide whether a session accepts submissions at a given instant.

    The gate only reads `is_active`; closing at the auto-close deadline is
    the scheduler's job.
    """
    
    @staticmethod
    def opens_at(session) -> datetime:
        return session.scheduled_at - GRACE_PERIOD
    
    @staticmethod
    def check(session, now: datetime) -> WindowStatus:
        opens_at = WindowService.opens_at(session)
        
        if not session.is_active:
            return WindowStatus(False, opens_at, REASON_INACTIVE)
        
        if now < opens_at:
            return WindowStatus(False, opens_at, REASON_NOT_YET_OPEN, wait=opens_at - now)
        
        return WindowStatus(True, opens_at, REASON_OPEN)
    
    @staticmethod
    def timer_status(session, now: datetime) -> Optional[Dict]:
        """Describe the auto-close timer for display, or None without one."""
        if not session.duration_minutes or not session.auto_close_at:
            return None
        
        remaining = session.auto_close_at - now
        if not session.is_active:
            state = 'elapsed'
        elif remaining <= timedelta(0):
            state = 'expired'
        elif remaining <= TIMER_WARNING_THRESHOLD:
            state = 'warning'
        else:
            state = 'active'
        
        return {
            'state': state,
            'duration_minutes': session.duration_minutes,
            'auto_close_at': session.auto_close_at.isoformat(),
            'remaining_seconds': max(remaining.total_seconds(), 0) if session.is_active else 0
        }

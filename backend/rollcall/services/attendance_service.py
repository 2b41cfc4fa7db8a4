"""Attendance service: the entry point the API layer talks to."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

from rollcall.models import AttendanceRecord, ClassSession, Subject
from rollcall.services.fingerprint_service import FingerprintService
from rollcall.services.network_service import ClientInfo
from rollcall.services.proxy_service import Candidate, ProxyDetector, shared_device_groups
from rollcall.services.token_service import MAX_ATTEMPTS, TokenService
from rollcall.services.window_service import WindowService, WindowStatus
from rollcall.utils.errors import (
    DuplicateSubmissionError, NotFoundError, SuspiciousSubmissionError,
    ValidationError, WindowClosedError
)
from rollcall.utils.validators import Validator

logger = logging.getLogger(__name__)


@dataclass
class Student:
    name: str
    student_id: str


@dataclass
class Submission:
    """What the student's device tells us about itself."""
    network_address: Optional[str] = None
    device_signals: Dict[str, Any] = field(default_factory=dict)
    user_agent: Optional[str] = None


class AttendanceService:
    """Create sessions, gate submissions and run the auto-close sweep.

    Collaborators are injected; nothing is read from module globals.
    """

    def __init__(
        self,
        store,
        scheduler,
        lookup=None,
        clock: Optional[Callable[[], datetime]] = None,
        public_base_url: str = '',
        strict_address_match: bool = True,
        token_retry_delay: float = 0.1
    ):
        self.store = store
        self.scheduler = scheduler
        self.lookup = lookup
        self.clock = clock or datetime.now
        self.public_base_url = public_base_url
        self.token_retry_delay = token_retry_delay
        self.detector = ProxyDetector(store, strict_address_match=strict_address_match)

    # Subjects

    def create_subject(self, name: str, description: Optional[str] = None) -> Subject:
        name = (name or '').strip()
        if not name:
            raise ValidationError("Subject name is required")
        return self.store.create_subject(name, (description or '').strip() or None)

    def list_subjects(self) -> List[Subject]:
        return self.store.list_subjects()

    def get_subject(self, subject_id: int) -> Subject:
        subject = self.store.get_subject(subject_id)
        if subject is None:
            raise NotFoundError(f"Subject {subject_id} not found")
        return subject

    # Sessions

    def create_session(self, subject_id: int, session_date, session_time,
                       duration_minutes=None) -> ClassSession:
        """Persist a new active session under a freshly issued token."""
        parsed_date = Validator.parse_date(session_date)
        parsed_time = Validator.parse_time(session_time)
        duration = Validator.validate_duration(duration_minutes)

        subject = self.get_subject(subject_id)

        scheduled_at = datetime.combine(parsed_date, parsed_time)
        auto_close_at = ClassSession.compute_auto_close(scheduled_at, duration)

        def persist(token: str) -> ClassSession:
            return self.store.create_session(
                subject_id=subject.id,
                session_date=parsed_date,
                session_time=parsed_time,
                session_token=token,
                is_active=True,
                duration_minutes=duration,
                auto_close_at=auto_close_at
            )

        session = TokenService.issue_unique(
            persist,
            max_attempts=MAX_ATTEMPTS,
            retry_delay=self.token_retry_delay
        )
        logger.info(f"Session {session.id} created for subject {subject.id}")

        if auto_close_at is not None:
            self.scheduler.arm_timer(session)

        return session

    def list_sessions(self, subject_id: int) -> List[ClassSession]:
        self.get_subject(subject_id)
        return self.store.list_sessions(subject_id)

    def get_session(self, session_id: int) -> ClassSession:
        session = self.store.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def get_session_by_token(self, token: str) -> ClassSession:
        session = self.store.get_session_by_token(token)
        if session is None:
            raise NotFoundError("Could not load session information. Check the attendance link.")
        return session

    def issue_session_link(self, session: ClassSession) -> str:
        query = urlencode({'session': session.session_token})
        return f"{self.public_base_url}?{query}"

    def toggle_session(self, session_id: int, active: bool) -> ClassSession:
        """
        Manually activate or deactivate a session.

        Always honoured at once. Reactivating keeps the original deadline when
        it is still ahead; a deadline already passed is cleared so the sweep
        does not close the session again.
        """
        session = self.get_session(session_id)

        if not active:
            self.scheduler.cancel_timer(session.id)
            self.store.set_session_active(session.id, False)
        else:
            fields = {'is_active': True}
            if session.auto_close_at is not None and session.auto_close_at <= self.clock():
                fields.update(duration_minutes=None, auto_close_at=None)
            self.store.update_session(session.id, **fields)
            session = self.get_session(session_id)
            self.scheduler.arm_timer(session)

        logger.info(f"Session {session_id} {'activated' if active else 'deactivated'} manually")
        return self.get_session(session_id)

    def session_view(self, session: ClassSession, now: Optional[datetime] = None) -> Dict:
        """Session details with window and timer state for display."""
        now = now or self.clock()
        data = session.to_dict()
        data['window'] = self.check_window(session, now).to_dict()
        data['timer'] = WindowService.timer_status(session, now)
        return data

    # Attendance

    def check_window(self, session: ClassSession, now: Optional[datetime] = None) -> WindowStatus:
        return WindowService.check(session, now or self.clock())

    def submit_attendance(self, session: ClassSession, student: Student,
                          submission: Submission,
                          now: Optional[datetime] = None) -> AttendanceRecord:
        """Validate, gate, screen and record one student's attendance."""
        name, student_id = Validator.normalize_student(student.name, student.student_id)
        now = now or self.clock()

        # Re-read so a close by another worker is seen
        session = self.get_session(session.id)
        status = WindowService.check(session, now)
        if not status.open:
            raise WindowClosedError(status.reason, wait=status.wait)

        if self.store.find_record(session.id, student_id) is not None:
            raise DuplicateSubmissionError()

        client = self._client_info(submission.network_address)
        fingerprint = self._fingerprint(submission)
        candidate = Candidate(network_address=client.address, fingerprint=fingerprint)

        verdict = self.detector.evaluate(session.id, candidate, now)
        if verdict.suspicious:
            raise SuspiciousSubmissionError(verdict.reason)

        record = self.store.create_record(
            session_id=session.id,
            student_id=student_id,
            student_name=name,
            marked_at=now,
            ip_address=client.address,
            browser_fingerprint=fingerprint,
            user_agent=submission.user_agent,
            location_data=client.to_json()
        )
        logger.info(f"Attendance marked for {student_id} in session {session.id}")
        return record

    def _client_info(self, address: Optional[str]) -> ClientInfo:
        if self.lookup is None:
            return ClientInfo(address=address or 'unknown')
        return self.lookup.lookup(address)

    def _fingerprint(self, submission: Submission) -> Optional[str]:
        try:
            return FingerprintService.extract(submission.device_signals, user_agent=submission.user_agent)
        except (TypeError, ValueError) as e:
            logger.warning(f"Fingerprinting unavailable: {e}")
            return None

    def session_attendance(self, session_id: int) -> Dict:
        """Records of a session plus devices shared between students."""
        session = self.get_session(session_id)
        records = self.store.list_records(session.id)
        return {
            'session': session.to_dict(),
            'records': [r.to_dict() for r in records],
            'total': len(records),
            'anti_proxy': shared_device_groups(records)
        }

    # Lifecycle

    def run_sweep_once(self, now: Optional[datetime] = None) -> int:
        return self.scheduler.sweep_once(now or self.clock())

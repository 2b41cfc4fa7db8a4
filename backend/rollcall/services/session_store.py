"""Store adapter over the SQLAlchemy models.

The services only talk to this class. It turns SQLAlchemy failures into
the store errors the core understands.
"""
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from rollcall import db
from rollcall.models import AttendanceRecord, ClassSession, Subject
from rollcall.utils.errors import DuplicateSubmissionError, StoreError, TokenCollisionError


def _violates(error: IntegrityError, column: str) -> bool:
    return column in str(error.orig)


class SessionStore:
    """Persistence for subjects, class sessions and attendance records."""
    
    def _commit(self, instance=None):
        try:
            if instance is not None:
                db.session.add(instance)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return instance
    
    def _read(self, fetch):
        """Run a query, turning failures into StoreError and ending the failed transaction."""
        try:
            return fetch()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f"Database error: {e}")
    
    def _update(self, query, **fields) -> bool:
        try:
            updated = query.update(fields, synchronize_session='fetch')
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError(f"Database error: {e}")
        return updated > 0
    
    # Subjects
    
    def create_subject(self, name: str, description: Optional[str] = None) -> Subject:
        try:
            return self._commit(Subject(name=name, description=description))
        except SQLAlchemyError as e:
            raise StoreError(f"Database error: {e}")
    
    def get_subject(self, subject_id: int) -> Optional[Subject]:
        return self._read(lambda: Subject.get_by_id(subject_id))
    
    def list_subjects(self) -> List[Subject]:
        return self._read(lambda: Subject.query.order_by(Subject.name).all())
    
    # Sessions
    
    def create_session(self, **fields) -> ClassSession:
        """Insert a session; raises TokenCollisionError on a taken token."""
        try:
            return self._commit(ClassSession(**fields))
        except IntegrityError as e:
            if _violates(e, 'session_token'):
                raise TokenCollisionError(f"Session token already in use: {fields.get('session_token')}")
            raise StoreError(f"Database error: {e.orig}")
        except SQLAlchemyError as e:
            raise StoreError(f"Database error: {e}")
    
    def get_session(self, session_id: int) -> Optional[ClassSession]:
        return self._read(lambda: ClassSession.get_by_id(session_id))
    
    def get_session_by_token(self, token: str) -> Optional[ClassSession]:
        return self._read(lambda: ClassSession.query.filter_by(session_token=token).first())
    
    def list_sessions(self, subject_id: int) -> List[ClassSession]:
        return self._read(lambda: ClassSession.query.filter_by(subject_id=subject_id).order_by(
            ClassSession.session_date.desc(), ClassSession.session_time.desc()
        ).all())
    
    def update_session(self, session_id: int, **fields) -> bool:
        """Update columns in place; returns whether a row matched."""
        return self._update(ClassSession.query.filter_by(id=session_id), **fields)
    
    def set_session_active(self, session_id: int, active: bool) -> bool:
        """Flip `is_active`; False when the session was already in that state."""
        return self._update(
            ClassSession.query.filter_by(id=session_id, is_active=not active),
            is_active=active
        )
    
    def find_auto_close_candidates(self) -> List[ClassSession]:
        """Active sessions that carry an auto-close deadline."""
        return self._read(lambda: ClassSession.query.filter(
            ClassSession.is_active.is_(True),
            ClassSession.auto_close_at.isnot(None)
        ).all())
    
    # Attendance
    
    def find_record(self, session_id: int, student_id: str) -> Optional[AttendanceRecord]:
        return self._read(lambda: AttendanceRecord.query.filter_by(
            session_id=session_id,
            student_id=student_id
        ).first())
    
    def find_records_by_address(self, session_id: int, address: str) -> List[AttendanceRecord]:
        return self._read(lambda: AttendanceRecord.query.filter(
            AttendanceRecord.session_id == session_id,
            AttendanceRecord.ip_address == address,
            AttendanceRecord.ip_address != 'unknown'
        ).order_by(AttendanceRecord.marked_at).all())
    
    def find_records_by_fingerprint(self, session_id: int, fingerprint: str) -> List[AttendanceRecord]:
        return self._read(lambda: AttendanceRecord.query.filter_by(
            session_id=session_id,
            browser_fingerprint=fingerprint
        ).order_by(AttendanceRecord.marked_at).all())
    
    def list_records(self, session_id: int) -> List[AttendanceRecord]:
        return self._read(lambda: AttendanceRecord.query.filter_by(session_id=session_id).order_by(
            AttendanceRecord.marked_at
        ).all())
    
    def create_record(self, **fields) -> AttendanceRecord:
        try:
            return self._commit(AttendanceRecord(**fields))
        except IntegrityError as e:
            if _violates(e, 'student'):
                raise DuplicateSubmissionError()
            raise StoreError(f"Database error: {e.orig}")
        except SQLAlchemyError as e:
            raise StoreError(f"Database error: {e}")

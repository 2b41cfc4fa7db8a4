"""Session lifecycle scheduler.

Sessions close when their auto-close deadline passes. The periodic sweep is
the authority: it finds and closes expired sessions on its own, including
after a restart when no timer was ever armed. One-shot timers only make the
close happen closer to the deadline.
"""
import atexit
import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from rollcall.utils.errors import StoreError

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 10
SWEEP_JOB_ID = 'session-sweep'


class SessionScheduler:
    """Owns auto-close timers and the reconciliation sweep."""

    def __init__(
        self,
        store,
        scheduler: Optional[BackgroundScheduler] = None,
        app=None,
        clock: Optional[Callable[[], datetime]] = None,
        sweep_interval: int = SWEEP_INTERVAL_SECONDS
    ):
        self.store = store
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)
        self.app = app
        self.clock = clock or datetime.now
        self.sweep_interval = sweep_interval
        self._observers: List[Callable[[int], None]] = []
        self._timers: Dict[int, str] = {}
        self._lock = threading.Lock()

    def add_observer(self, callback: Callable[[int], None]) -> None:
        """Register a callback receiving the number of sessions closed."""
        self._observers.append(callback)

    def _notify(self, closed_count: int) -> None:
        for callback in self._observers:
            try:
                callback(closed_count)
            except Exception as e:
                logger.error(f"Auto-close observer failed: {e}")

    def _in_context(self, func, *args):
        if self.app is None:
            return func(*args)
        with self.app.app_context():
            return func(*args)

    # Timers

    @property
    def armed_timers(self) -> Dict[int, str]:
        with self._lock:
            return dict(self._timers)

    def arm_timer(self, session) -> bool:
        """Schedule a one-shot close at the session's deadline."""
        if not session.is_active or session.auto_close_at is None:
            return False

        now = self.clock()
        if session.auto_close_at <= now:
            # Already due; the next sweep closes it
            return False

        self.cancel_timer(session.id)
        job_id = f'auto-close-{session.id}'
        self.scheduler.add_job(
            self._run_timer,
            trigger='date',
            run_date=session.auto_close_at,
            args=[session.id],
            id=job_id,
            replace_existing=True,
            misfire_grace_time=None
        )
        with self._lock:
            self._timers[session.id] = job_id

        remaining = session.auto_close_at - now
        logger.info(
            f"Session {session.id} scheduled to auto-close in "
            f"{round(remaining.total_seconds() / 60)} minutes"
        )
        return True

    def cancel_timer(self, session_id: int) -> bool:
        """Drop a pending timer; returns False if none was pending."""
        with self._lock:
            job_id = self._timers.pop(session_id, None)
        if job_id is None:
            return False

        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            # Fired already
            return False
        return True

    def _run_timer(self, session_id: int) -> None:
        with self._lock:
            self._timers.pop(session_id, None)
        if self._in_context(self._close_if_active, session_id):
            self._notify(1)

    def _close_if_active(self, session_id: int) -> bool:
        try:
            session = self.store.get_session(session_id)
            if session is None or not session.is_active or session.auto_close_at is None:
                return False
            if not self.store.set_session_active(session_id, False):
                # Closed by the sweep or the instructor in between
                return False
        except StoreError as e:
            logger.error(f"Error auto-closing session {session_id}: {e.message}")
            return False

        logger.info(f"Session {session_id} automatically closed")
        return True

    # Sweep

    def sweep_once(self, now: Optional[datetime] = None) -> int:
        """Close every active session whose deadline has passed."""
        now = now or self.clock()

        try:
            candidates = self.store.find_auto_close_candidates()
        except StoreError as e:
            logger.error(f"Auto-close sweep query failed: {e.message}")
            return 0

        closed = 0
        for session in candidates:
            if now < session.auto_close_at:
                continue
            try:
                if self.store.set_session_active(session.id, False):
                    closed += 1
                    logger.info(f"Session {session.id} auto-closed by timer check")
            except StoreError as e:
                logger.error(f"Error closing session {session.id}: {e.message}")
                continue
            self.cancel_timer(session.id)

        if closed:
            self._notify(closed)
        return closed

    def _run_sweep(self) -> None:
        try:
            self._in_context(self.sweep_once)
        except Exception as e:
            logger.error(f"Auto-close sweep failed: {e}")

    def rearm_pending(self) -> int:
        """Arm timers for every open session with a future deadline."""
        try:
            candidates = self.store.find_auto_close_candidates()
        except StoreError as e:
            logger.error(f"Could not re-arm auto-close timers: {e.message}")
            return 0
        return sum(1 for session in candidates if self.arm_timer(session))

    # Lifecycle

    def start(self) -> None:
        """Start the background sweep and re-arm timers lost on restart."""
        if self.scheduler.running:
            return

        self.scheduler.add_job(
            self._run_sweep,
            trigger='interval',
            seconds=self.sweep_interval,
            id=SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now()
        )
        self._in_context(self.rearm_pending)
        self.scheduler.start()
        atexit.register(self.shutdown)
        logger.info(f"Auto-close sweep running every {self.sweep_interval} seconds")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

"""Test session auto-close timers and the reconciliation sweep."""
import time
from datetime import datetime, timedelta

import pytest
from rollcall import db
from rollcall.services.scheduler_service import SessionScheduler
from rollcall.services.session_store import SessionStore
from rollcall.utils.errors import StoreError

DEADLINE = datetime(2024, 3, 1, 10, 0)

@pytest.fixture
def fresh_scheduler(app, clock):
    """Scheduler with no timers armed, as after a process restart."""
    return SessionScheduler(SessionStore(), clock=clock)

def test_auto_close_deadline_is_scheduled_time_plus_duration(morning_session):
    assert morning_session.duration_minutes == 60
    assert morning_session.auto_close_at == DEADLINE

def test_creating_timed_session_arms_timer(service, morning_session):
    armed = service.scheduler.armed_timers

    assert armed == {morning_session.id: f'auto-close-{morning_session.id}'}
    assert service.scheduler.scheduler.get_job(armed[morning_session.id]) is not None

def test_session_without_duration_arms_nothing(service, subject):
    session = service.create_session(subject.id, '2024-03-01', '09:00')

    assert session.auto_close_at is None
    assert session.id not in service.scheduler.armed_timers

def test_sweep_boundary(service, morning_session):
    assert service.run_sweep_once(DEADLINE - timedelta(seconds=1)) == 0
    assert morning_session.is_active is True

    assert service.run_sweep_once(DEADLINE) == 1
    assert morning_session.is_active is False

def test_sweep_is_idempotent(service, morning_session):
    assert service.run_sweep_once(DEADLINE) == 1
    assert service.run_sweep_once(DEADLINE) == 0

def test_sweep_cancels_stale_timer(service, morning_session):
    service.run_sweep_once(DEADLINE)
    assert morning_session.id not in service.scheduler.armed_timers

def test_sweep_closes_without_any_armed_timer(fresh_scheduler, morning_session):
    assert fresh_scheduler.armed_timers == {}
    assert fresh_scheduler.sweep_once(DEADLINE + timedelta(hours=5)) == 1
    assert morning_session.is_active is False

def test_sweep_ignores_sessions_without_deadline(service, subject):
    session = service.create_session(subject.id, '2024-03-01', '07:00')

    assert service.run_sweep_once(DEADLINE + timedelta(days=1)) == 0
    assert session.is_active is True

def test_sweep_notifies_observers_with_count(service, subject):
    service.create_session(subject.id, '2024-03-01', '09:00', duration_minutes=30)
    service.create_session(subject.id, '2024-03-01', '09:00', duration_minutes=45)
    service.create_session(subject.id, '2024-03-01', '09:00', duration_minutes=120)
    counts = []
    service.scheduler.add_observer(counts.append)

    assert service.run_sweep_once(DEADLINE) == 2
    assert service.run_sweep_once(DEADLINE) == 0
    assert counts == [2]

def test_timer_fires_close(fresh_scheduler, morning_session):
    counts = []
    fresh_scheduler.add_observer(counts.append)
    assert fresh_scheduler.arm_timer(morning_session) is True

    fresh_scheduler._run_timer(morning_session.id)

    assert morning_session.is_active is False
    assert counts == [1]
    assert fresh_scheduler.armed_timers == {}

def test_timer_on_already_closed_session_is_noop(service, fresh_scheduler, morning_session):
    counts = []
    fresh_scheduler.add_observer(counts.append)
    service.toggle_session(morning_session.id, False)

    fresh_scheduler._run_timer(morning_session.id)

    assert counts == []

def test_cancel_timer(fresh_scheduler, morning_session):
    fresh_scheduler.arm_timer(morning_session)

    assert fresh_scheduler.cancel_timer(morning_session.id) is True
    assert fresh_scheduler.scheduler.get_job(f'auto-close-{morning_session.id}') is None
    assert fresh_scheduler.cancel_timer(morning_session.id) is False

def test_past_deadline_is_left_to_the_sweep(fresh_scheduler, clock, morning_session):
    clock.set(DEADLINE)
    assert fresh_scheduler.arm_timer(morning_session) is False

def test_rearm_pending_after_restart(fresh_scheduler, service, subject, morning_session):
    service.create_session(subject.id, '2024-03-01', '07:00', duration_minutes=30)

    assert fresh_scheduler.rearm_pending() == 1
    assert list(fresh_scheduler.armed_timers) == [morning_session.id]


class BrokenStore:
    def find_auto_close_candidates(self):
        raise StoreError("Database error: connection refused")


def test_sweep_failure_is_logged_not_raised(clock, caplog):
    scheduler = SessionScheduler(BrokenStore(), clock=clock)

    assert scheduler.sweep_once(DEADLINE) == 0
    assert 'connection refused' in caplog.text


def test_closing_twice_reports_one_change(morning_session):
    store = SessionStore()

    assert store.set_session_active(morning_session.id, False) is True
    assert store.set_session_active(morning_session.id, False) is False
    assert store.set_session_active(morning_session.id, True) is True

def test_timer_and_sweep_close_once(service, fresh_scheduler, morning_session):
    counts = []
    fresh_scheduler.add_observer(counts.append)

    fresh_scheduler._run_timer(morning_session.id)
    assert service.run_sweep_once(DEADLINE) == 0
    assert counts == [1]

def test_sweep_with_stale_candidates_counts_nothing(fresh_scheduler, morning_session, monkeypatch):
    stale = fresh_scheduler.store.find_auto_close_candidates()
    fresh_scheduler.store.set_session_active(morning_session.id, False)
    monkeypatch.setattr(fresh_scheduler.store, 'find_auto_close_candidates', lambda: stale)
    counts = []
    fresh_scheduler.add_observer(counts.append)

    assert fresh_scheduler.sweep_once(DEADLINE) == 0
    assert counts == []

def test_started_scheduler_sweeps_in_background(app, clock, morning_session):
    clock.set(DEADLINE + timedelta(minutes=5))
    db.session.commit()
    scheduler = SessionScheduler(SessionStore(), app=app, clock=clock, sweep_interval=1)
    counts = []
    scheduler.add_observer(counts.append)

    scheduler.start()
    try:
        for _ in range(50):
            if counts:
                break
            time.sleep(0.1)
    finally:
        scheduler.shutdown()

    assert counts == [1]
    db.session.expire_all()
    assert db.session.get(type(morning_session), morning_session.id).is_active is False

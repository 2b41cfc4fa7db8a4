"""Shared fixtures."""
from datetime import datetime, timedelta

import pytest
from rollcall import create_app, db


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock parked at 2024-03-01 08:00."""
    return FakeClock(datetime(2024, 3, 1, 8, 0))

@pytest.fixture
def app(clock):
    """Create test app."""
    app = create_app('testing', clock=clock)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def service(app):
    """Attendance service bound to the test app."""
    return app.extensions['rollcall']

@pytest.fixture
def subject(service):
    """Create sample subject."""
    return service.create_subject('Algorithms', 'CS 301')

@pytest.fixture
def morning_session(service, subject):
    """Session on 2024-03-01 at 09:00 with a 60 minute timer."""
    return service.create_session(subject.id, '2024-03-01', '09:00', duration_minutes=60)

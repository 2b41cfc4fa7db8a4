"""Test environment selection and config-driven rate limits."""
import pytest
from config import get_config
from config.development import DevelopmentConfig
from config.production import ProductionConfig
from config.testing import TestingConfig
from rollcall import create_app, db

def test_config_by_name():
    assert get_config('testing') is TestingConfig
    assert get_config('Production') is ProductionConfig

def test_config_from_flask_env(monkeypatch):
    monkeypatch.setenv('FLASK_ENV', 'production')
    assert get_config() is ProductionConfig

def test_unknown_environment_falls_back_to_development(monkeypatch):
    monkeypatch.delenv('FLASK_ENV', raising=False)
    assert get_config() is DevelopmentConfig
    assert get_config('staging') is DevelopmentConfig

def test_production_limits_are_stricter():
    assert ProductionConfig.RATELIMIT_DEFAULT == "100 per day, 20 per hour"


@pytest.fixture
def limited_app(clock):
    app = create_app(
        'testing',
        clock=clock,
        RATELIMIT_ENABLED=True,
        RATELIMIT_DEFAULT='2 per minute',
        ATTENDANCE_SUBMIT_LIMIT='1 per minute'
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

def test_default_limit_comes_from_config(limited_app):
    client = limited_app.test_client()
    codes = [client.get('/health').status_code for _ in range(3)]
    assert codes == [200, 200, 429]

def test_submission_limit_comes_from_config(limited_app):
    client = limited_app.test_client()
    body = {'student_name': 'Alice', 'student_id': 'S1'}

    assert client.post('/api/attendance/doesnotexist', json=body).status_code == 404
    assert client.post('/api/attendance/doesnotexist', json=body).status_code == 429

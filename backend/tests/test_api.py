"""Test the HTTP endpoints."""
import json
from datetime import datetime

import pytest

LAPTOP = {'screen': '1920x1080', 'timezone': 'Europe/Berlin', 'platform': 'Linux x86_64'}
PHONE = {'screen': '390x844', 'timezone': 'Europe/Berlin', 'platform': 'iPhone'}

@pytest.fixture
def created_session(client):
    """Create a subject and a 09:00 session through the API."""
    response = client.post('/api/subjects', json={'name': 'Algorithms', 'description': 'CS 301'})
    subject_id = json.loads(response.data)['data']['id']

    response = client.post('/api/sessions', json={
        'subject_id': subject_id,
        'session_date': '2024-03-01',
        'session_time': '09:00',
        'duration_minutes': 60
    })
    assert response.status_code == 201
    return json.loads(response.data)['data']

def post_attendance(client, token, name, student_id, address, device=None):
    return client.post(
        f'/api/attendance/{token}',
        json={'student_name': name, 'student_id': student_id, 'device': device or LAPTOP},
        environ_base={'REMOTE_ADDR': address}
    )

def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data)['status'] == 'healthy'

def test_create_subject_validation(client):
    response = client.post('/api/subjects', json={})
    assert response.status_code == 400
    assert json.loads(response.data)['error'] is True

def test_create_session(created_session):
    assert created_session['is_active'] is True
    assert created_session['auto_close_at'] == '2024-03-01T10:00:00'
    assert created_session['window']['opens_at'] == '2024-03-01T08:50:00'
    assert created_session['timer']['state'] == 'active'
    assert created_session['attendance_url'].endswith(f"?session={created_session['session_token']}")

def test_create_session_validation(client):
    response = client.post('/api/subjects', json={'name': 'Algorithms'})
    subject_id = json.loads(response.data)['data']['id']

    response = client.post('/api/sessions', json={'subject_id': subject_id, 'session_date': '2024-03-01'})
    assert response.status_code == 400

    response = client.post('/api/sessions', json={'session_date': '2024-03-01', 'session_time': '09:00'})
    assert response.status_code == 400

def test_unknown_session_is_404(client):
    assert client.get('/api/sessions/999').status_code == 404
    assert client.get('/api/attendance/nope').status_code == 404

def test_list_subject_sessions(client, created_session):
    response = client.get(f"/api/subjects/{created_session['subject_id']}/sessions")
    data = json.loads(response.data)['data']

    assert [s['id'] for s in data] == [created_session['id']]

def test_session_link(client, created_session):
    response = client.get(f"/api/sessions/{created_session['id']}/link")
    data = json.loads(response.data)['data']

    assert data['session_token'] == created_session['session_token']
    assert data['attendance_url'] == created_session['attendance_url']

def test_student_view_before_window(client, created_session):
    response = client.get(f"/api/attendance/{created_session['session_token']}")
    data = json.loads(response.data)['data']

    assert response.status_code == 200
    assert data['subject_name'] == 'Algorithms'
    assert data['window']['open'] is False
    assert data['window']['reason'] == 'not yet open'
    assert data['window']['wait_seconds'] == 50 * 60

def test_submission_before_window_is_rejected(client, created_session):
    response = post_attendance(client, created_session['session_token'], 'Alice', 'S1', '203.0.113.5')
    data = json.loads(response.data)

    assert response.status_code == 403
    assert data['reason'] == 'not yet open'
    assert data['wait_seconds'] == 50 * 60

def test_submission_flow(client, clock, created_session):
    token = created_session['session_token']
    clock.set(datetime(2024, 3, 1, 8, 50))

    response = post_attendance(client, token, 'Alice', 'S1', '203.0.113.5')
    assert response.status_code == 201
    assert json.loads(response.data)['data']['student_name'] == 'ALICE'

    response = post_attendance(client, token, 'Alice', 'S1', '198.51.100.7', PHONE)
    assert response.status_code == 409

    clock.set(datetime(2024, 3, 1, 8, 50, 10))
    response = post_attendance(client, token, 'Bob', 'S2', '203.0.113.5', PHONE)
    data = json.loads(response.data)
    assert response.status_code == 403
    assert data['reason'] == 'same network address as ALICE'

    response = client.get(f"/api/sessions/{created_session['id']}/attendance")
    data = json.loads(response.data)['data']
    assert data['total'] == 1
    assert data['records'][0]['ip_address'] == '203.0.113.5'

def test_forwarded_address_is_used(client, clock, created_session):
    token = created_session['session_token']
    clock.set(datetime(2024, 3, 1, 9, 0))
    client.post(
        f'/api/attendance/{token}',
        json={'student_name': 'Alice', 'student_id': 'S1', 'device': LAPTOP},
        headers={'X-Forwarded-For': '203.0.113.5'}
    )

    response = client.get(f"/api/sessions/{created_session['id']}/attendance")
    assert json.loads(response.data)['data']['records'][0]['ip_address'] == '203.0.113.5'

def test_submission_requires_name_and_id(client, clock, created_session):
    clock.set(datetime(2024, 3, 1, 9, 0))
    response = client.post(f"/api/attendance/{created_session['session_token']}", json={})
    assert response.status_code == 400

def test_submission_fields_checked_before_token_lookup(client):
    response = client.post('/api/attendance/doesnotexist', json={'student_name': '  '})
    assert response.status_code == 400

    response = client.post('/api/attendance/doesnotexist', json={'student_name': 'Alice', 'student_id': 'S1'})
    assert response.status_code == 404

def test_toggle_session(client, created_session):
    url = f"/api/sessions/{created_session['id']}/toggle"

    response = client.post(url, json={'active': False})
    assert response.status_code == 200
    assert json.loads(response.data)['data']['is_active'] is False

    response = client.post(url, json={'active': True})
    assert json.loads(response.data)['data']['is_active'] is True

    assert client.post(url, json={}).status_code == 400

def test_sweep_endpoint(client, clock, created_session):
    clock.set(datetime(2024, 3, 1, 10, 0))

    response = client.post('/api/sessions/sweep')
    assert json.loads(response.data)['data']['closed_count'] == 1

    response = client.post('/api/sessions/sweep')
    assert json.loads(response.data)['data']['closed_count'] == 0

    response = post_attendance(client, created_session['session_token'], 'Alice', 'S1', '203.0.113.5')
    assert response.status_code == 403
    assert json.loads(response.data)['reason'] == 'session inactive'

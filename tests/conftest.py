"""Shared fixtures: a fresh app and database per test, and logged-in clients."""
import pytest

from app import create_app
from config import TestingConfig
from models import db

KOLKATA = {'latitude': 22.5726, 'longitude': 88.3639}


@pytest.fixture
def app(tmp_path):
    config = type('TestConfig', (TestingConfig,), {'UPLOAD_FOLDER': str(tmp_path / 'uploads')})
    app = create_app(config)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def register(app):
    """Sign up and log in a user on its own test client."""
    def _register(email, role='citizen', password='secret123', name=None, **profile):
        client = app.test_client()
        name = name or email.split('@')[0].title()
        if role == 'admin':
            result = app.test_cli_runner().invoke(
                args=['create-admin', email, '--name', name, '--password', password])
            assert result.exit_code == 0, result.output
        else:
            response = client.post('/api/auth/signup', json={
                'email': email,
                'password': password,
                'name': name,
                'user_type': role,
                **profile
            })
            assert response.status_code == 201, response.get_json()

        response = client.post('/api/auth/login', json={'email': email, 'password': password})
        assert response.status_code == 200, response.get_json()
        client.user = response.get_json()['data']
        return client

    return _register


@pytest.fixture
def citizen(register):
    return register('citizen@example.com')


@pytest.fixture
def neighbour(register):
    return register('neighbour@example.com')


@pytest.fixture
def admin(register):
    return register('admin@example.com', role='admin')


@pytest.fixture
def worker(register):
    return register('worker@example.com', role='worker')


@pytest.fixture
def worker_id(admin, worker):
    response = admin.get('/api/workers')
    workers = response.get_json()['data']
    return next(w['id'] for w in workers if w['user_id'] == worker.user['id'])


@pytest.fixture
def make_issue():
    def _make_issue(client, **overrides):
        body = {
            'title': 'Pothole on 5th',
            'description': 'Deep pothole in the left lane near the bus stop.',
            'category': 'pothole',
            'priority': 'high',
            'location': dict(KOLKATA),
            'address': '5th Street, Kolkata'
        }
        body.update(overrides)
        response = client.post('/api/issues', json=body)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['data']

    return _make_issue

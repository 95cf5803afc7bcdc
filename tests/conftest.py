"""
Test configuration and fixtures
"""
import pytest

from flask_app import create_app

DEV_TOKEN = 'test-dev-token'


@pytest.fixture
def app(tmp_path):
    """App with data and uploads in a temporary directory"""
    app = create_app({
        'TESTING': True,
        'APP_ENV': 'development',
        'SECRET_KEY': 'test-secret-key',
        'LOCAL_ADMIN_TOKEN': DEV_TOKEN,
        'ADMIN_USERNAME': 'admin',
        'ADMIN_PASSWORD': 'password',
        'DATA_DIR': str(tmp_path / 'data'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'MAX_UPLOAD_BYTES': 5 * 1024 * 1024,
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    """Test client with a logged-in admin session"""
    client = app.test_client()
    response = client.post('/api/login', json={'username': 'admin', 'password': 'password'})
    assert response.status_code == 200
    return client


@pytest.fixture
def dev_headers():
    return {'x-admin-token': DEV_TOKEN}


@pytest.fixture
def store(app):
    return app.extensions['content_store']

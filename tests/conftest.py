"""
Pytest configuration and shared fixtures
"""
import sys
import pytest
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def app(tmp_path):
    """Flask app on a fresh in-memory database with storage under tmp_path"""
    from app_init import create_app

    data_folder = tmp_path / 'data'
    application = create_app('testing', overrides={
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'DATA_FOLDER': str(data_folder),
        'INSPECTION_BACKUP_FOLDER': str(data_folder / 'backups'),
    })
    yield application


@pytest.fixture
def client(app):
    """Test client for the app"""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """
    Session factory bound to the app's database.

    Usage:
        with db_session() as session:
            ...
    """
    from database.connection import get_db_session
    return get_db_session


class StubAI:
    """Stands in for AIService in tests; records prompts and returns canned text."""

    def __init__(self, text='Fresh new kitchen fitted in Cardiff! Call us today.', error=None):
        self.text = text
        self.error = error
        self.prompts = []

    def generate_text(self, prompt, system=None, max_tokens=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.text

    def is_available(self, service='claude'):
        return self.error is None


@pytest.fixture
def stub_ai():
    return StubAI()


@pytest.fixture
def make_contact(client):
    def _make(**overrides):
        payload = {'name': 'Jane Client', 'email': 'jane@example.com', 'phone': '07700900123'}
        payload.update(overrides)
        response = client.post('/api/contacts', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['contact']
    return _make


@pytest.fixture
def make_partner(client):
    def _make(**overrides):
        payload = {
            'business_name': 'Sparks Electrical',
            'contact_name': 'Sam Sparks',
            'email': 'sam@sparks.example.com',
            'trade_category': 'electrical',
            'commission_type': 'percentage',
            'commission_value': 10,
        }
        payload.update(overrides)
        response = client.post('/api/trade-partners', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['partner']
    return _make


@pytest.fixture
def make_job(client):
    def _make(**overrides):
        payload = {'title': 'Kitchen refit', 'address': '1 High Street', 'postcode': 'CF10 1AA'}
        payload.update(overrides)
        response = client.post('/api/jobs', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['job']
    return _make

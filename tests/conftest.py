# tests/conftest.py
"""
Shared fixtures for the pytest test suite.

Every test function gets its own application and in-memory SQLite database,
so tests commit for real and never see each other's rows. The audit log is
pointed at a per-test temporary directory.
"""
import os

# Must be set before app/celery_worker are imported anywhere
os.environ['FLASK_ENV'] = 'testing'

import pytest
from unittest.mock import MagicMock

from app import create_app
from extensions import db
from services.call_event import CallEvent
from tests.fixtures.alert_fixtures import make_call_payload


@pytest.fixture
def audit_dir(tmp_path):
    return tmp_path / 'alerts'


@pytest.fixture
def app(audit_dir):
    """A fresh Flask application and schema for one test function"""
    app = create_app(config_name='testing', test_config={
        'ALERT_LOG_DIR': str(audit_dir),
        'SERVER_NAME': 'localhost.localdomain',
    })

    with app.app_context():
        db.create_all()
        yield app

        # --- Teardown ---
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    """The application's scoped session; tests commit through it directly"""
    return db.session


@pytest.fixture
def alert_service(app):
    return app.services.get('emergency_alert')


@pytest.fixture
def mock_audit_log():
    mock = MagicMock()
    mock.record.return_value = True
    return mock


@pytest.fixture
def call_event():
    """Scenario call: a 911 call from extension 100 through the secondary gateway"""
    return CallEvent.from_payload(make_call_payload())


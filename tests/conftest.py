"""
StudyHub - Test Configuration and Fixtures
"""
import os
import itertools

import pytest
from fastapi.testclient import TestClient

# Set testing environment before the application modules read it
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_LEVEL'] = 'WARNING'

from app import create_app
from core.blob_store import BlobStore
from core.database import Database
from utils.attachment_manager import AttachmentManager
from utils.group_file_manager import GroupFileManager
from utils.group_manager import GroupManager
from utils.invitation_manager import InvitationManager
from utils.resource_share_manager import ResourceShareManager
from utils.student_manager import StudentManager

_counter = itertools.count(1)


# --- Manager level fixtures ---

@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database file per test"""
    db = Database(f"sqlite:///{tmp_path / 'studyhub-test.db'}")
    db.init()
    yield db
    db.close()


@pytest.fixture
def blob_store(tmp_path):
    store = BlobStore(tmp_path / 'blobs')
    store.init()
    yield store
    store.close()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def students(db_session):
    return StudentManager(db_session)


@pytest.fixture
def make_student(students):
    """Create a student directly through the StudentManager"""
    def _make(name=None):
        n = next(_counter)
        name = name or f'Student {n}'
        return students.create_student(name, f'student{n}@example.com', 'password123')
    return _make


@pytest.fixture
def groups(db_session, blob_store):
    return GroupManager(db_session, blob_store)


@pytest.fixture
def invitations(db_session, groups):
    return InvitationManager(db_session, groups)


@pytest.fixture
def shares(db_session, attachments):
    return ResourceShareManager(db_session, attachments)


@pytest.fixture
def group_files(db_session, blob_store):
    return GroupFileManager(db_session, blob_store)


@pytest.fixture
def attachments(db_session, blob_store):
    return AttachmentManager(db_session, blob_store)


# --- HTTP level fixtures ---

@pytest.fixture
def app(tmp_path):
    return create_app(
        database_url=f"sqlite:///{tmp_path / 'studyhub-api.db'}",
        blob_store_dir=tmp_path / 'api-blobs',
    )


@pytest.fixture
def client(app):
    """Test client; entering the context runs startup and shutdown"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a student over HTTP and return (student, auth headers)"""
    def _register(name=None):
        n = next(_counter)
        payload = {
            'name': name or f'User {n}',
            'email': f'user{n}@example.com',
            'password': 'password123',
        }
        response = client.post('/api/auth/register', json=payload)
        assert response.status_code == 201, response.text
        data = response.json()
        return data['student'], {'Authorization': f"Bearer {data['token']}"}
    return _register

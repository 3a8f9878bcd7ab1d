import threading
from typing import List
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from src.config import Settings
from src.database.core import make_session
from src.main import create_app
from src.utils.email import NotificationMessage

TEST_TOKEN = "secrettoken"


class RecordingTransport:
    """Mail transport that keeps every delivered message in memory"""

    def __init__(self):
        self.sent: List[NotificationMessage] = []
        self._lock = threading.Lock()

    def send(self, message: NotificationMessage) -> None:
        with self._lock:
            self.sent.append(message)


class BlockingTransport:
    """Mail transport that hangs until released, then fails"""

    def __init__(self, fail: bool = True):
        self.fail = fail
        self.started = threading.Event()
        self.release = threading.Event()
        self.attempts = 0

    def send(self, message: NotificationMessage) -> None:
        self.attempts += 1
        self.started.set()
        self.release.wait(timeout=10)
        if self.fail:
            raise ConnectionRefusedError("mail relay unreachable")


# Fixtures for tests
@pytest.fixture(scope="function")
def transport():
    return RecordingTransport()

@pytest.fixture(scope="function")
def blocking_transport():
    transport = BlockingTransport()
    yield transport
    # Never leave a worker hanging past the test
    transport.release.set()

@pytest.fixture(scope="session")
def auth_headers():
    """Reusable Authorization header for API requests"""
    return {"Authorization": f"Basic {TEST_TOKEN}"}

@pytest.fixture(scope="function")
def make_client(tmp_path, transport):
    """
    Factory for a started TestClient. Each client gets its own app, allow-list
    and SQLite file; the lifespan runs on creation and is closed after the test.
    """
    opened: List[TestClient] = []

    def _make(tokens=(TEST_TOKEN,), mail_transport=None, **overrides) -> TestClient:
        settings = Settings(
            allowed_authorization_tokens=list(tokens),
            db_path=str(tmp_path / f"attendance-{len(opened)}.sqlite3"),
            notification_workers=1,
            **overrides,
        )
        app = create_app(settings, transport=mail_transport or transport)
        client = TestClient(app)
        client.__enter__()
        opened.append(client)
        return client

    yield _make

    for client in opened:
        client.__exit__(None, None, None)

@pytest.fixture(scope="function")
def client(make_client):
    """Client with the single-token allow-list used by most tests"""
    return make_client()

@pytest.fixture(scope="function")
def mock_db(client):
    """Replace the per-request database session with a mock"""
    db = MagicMock(spec=Session)
    client.app.dependency_overrides[make_session] = lambda: db
    yield db
    client.app.dependency_overrides.pop(make_session)

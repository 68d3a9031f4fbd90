"""
Pytest configuration for the chat backend.

Every test gets a fresh in-memory SQLite database. The app's own engine is
pointed at an in-memory URL before any import so nothing touches a file.
Realtime emission is captured by RecordingTransport instead of a live
transport, so route tests can assert on the events a request produced.
"""

import os

# Set before any chatapp import so the module-level engine is in-memory
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BROADCAST_URL", "memory://")
os.environ.setdefault("CI", "true")

from typing import Any, Dict, List, Sequence, Tuple

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chatapp.database import Base, get_db
from chatapp.main import app
from chatapp.models.user import User
from chatapp.services.messaging.fanout import FanoutRouter
from chatapp.services.messaging.session_registry import SessionRegistry
from tests._utils.factories import make_user

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_engine, "connect")
def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)


class RecordingTransport:
    """Live transport that only remembers what it was asked to send."""

    def __init__(self) -> None:
        self.sent: List[Tuple[List[str], str, Dict[str, Any]]] = []

    async def broadcast(self, channels: Sequence[str], event: str, payload: Dict[str, Any]) -> None:
        self.sent.append((list(channels), event, payload))

    def events(self) -> List[str]:
        return [event for _, event, _ in self.sent]

    def last(self, event: str) -> Tuple[List[str], Dict[str, Any]]:
        for channels, name, payload in reversed(self.sent):
            if name == event:
                return channels, payload
        raise AssertionError(f"No {event} event was emitted")


@pytest.fixture(scope="function")
def db():
    """Create the schema, hand out a session, then drop everything."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def recorder() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def client(db: Session, recorder: RecordingTransport):
    """Test client sharing the test session, with events captured."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_registry = SessionRegistry()
    app.state.fanout = FanoutRouter(recorder)

    # No context manager: the lifespan (real broadcaster) stays off
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def alice(db: Session) -> User:
    return make_user(db, "alice")


@pytest.fixture
def bob(db: Session) -> User:
    return make_user(db, "bob")


@pytest.fixture
def carol(db: Session) -> User:
    return make_user(db, "carol")

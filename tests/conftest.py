"""
Pytest configuration and fixtures for the cellar tests.
"""

import os
import uuid

import pytest

# Set test environment before importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""

from db.database import Bottle, ConfirmedWine, DinnerEvent, User, Wine  # noqa: E402


class RecordingCanceller:
    """Notification canceller that remembers what it was asked to cancel."""

    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def cancel(self, event_id, notification_id=None):
        self.calls.append((event_id, notification_id))
        if self.fail:
            raise RuntimeError("push backend down")


@pytest.fixture
def make_bottle():
    """Factory for transient bottle records (no database needed)."""
    def _make(name, producer=None, quantity=1, status="available"):
        wine = Wine(id=uuid.uuid4(), name=name, producer=producer) if name is not None else None
        return Bottle(id=uuid.uuid4(), wine=wine, quantity=quantity, status=status)
    return _make


@pytest.fixture
def make_planned():
    """Factory for transient confirmed wines."""
    def _make(name, producer=None, quantity=1, is_from_cellar=True):
        return ConfirmedWine(
            id=uuid.uuid4(),
            wine_name=name,
            producer=producer,
            quantity=quantity,
            is_from_cellar=is_from_cellar,
            course="secondi",
        )
    return _make


@pytest.fixture
def make_event():
    def _make(wines, notification_id=None, status="confirmed"):
        return DinnerEvent(
            id=uuid.uuid4(),
            title="Cena di prova",
            status=status,
            post_dinner_notification_id=notification_id,
            confirmed_wines=list(wines),
        )
    return _make


@pytest.fixture
def recording_canceller():
    return RecordingCanceller()


@pytest.fixture
def test_user():
    return User(
        id=uuid.uuid4(),
        email="host@example.com",
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=False,
        is_verified=True,
    )


@pytest.fixture
def client(tmp_path, monkeypatch, test_user, recording_canceller):
    """TestClient on a fresh SQLite database, with auth and notifications stubbed."""
    from fastapi.testclient import TestClient
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
    from sqlalchemy.pool import NullPool

    import db.database as database
    from core.auth import current_active_user
    from main import app
    from routers.unload import get_notification_canceller

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cellar.db'}", poolclass=NullPool)
    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(database, "async_session_maker", async_sessionmaker(engine, expire_on_commit=False))

    app.dependency_overrides[current_active_user] = lambda: test_user
    app.dependency_overrides[get_notification_canceller] = lambda: recording_canceller
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

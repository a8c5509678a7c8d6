"""
Shared fixtures for EcoVision tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ecovision import Settings, create_app
from ecovision.storage import InMemoryKeyValueStore


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(secret_key="test-secret-key-for-claims", collaborator_timeout_seconds=2.0)


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def app(settings, clock, kv):
    return create_app(settings=settings, clock=clock, store=kv)


@pytest.fixture
def alice(app):
    claim = app.sessions.sign_up("Alice", "alice@example.com")
    return app.sessions.authenticate(claim)


@pytest.fixture
def bob(app):
    claim = app.sessions.sign_up("Bob", "bob@example.com")
    return app.sessions.authenticate(claim)


@pytest.fixture
def admin(app):
    claim = app.sessions.sign_up("Root", "root@example.com", requested_role="admin")
    return app.sessions.authenticate(claim)

"""Shared fixtures: in-memory databases, fast hashing, a frozen clock and an API client."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from habit_tracker.config import Settings
from habit_tracker.database import get_engine, get_session_factory, init_db
from habit_tracker.main import create_app
from habit_tracker.security import PasswordHasher
from habit_tracker.tokens import TokenService
from habit_tracker.users import UserStore

TEST_SECRET = "test-secret"
API = "/api/v1"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def token_service(clock):
    return TokenService(TEST_SECRET, clock=clock)


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def engine():
    engine = get_engine("sqlite+pysqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    store = UserStore(db)

    def _make_user(login="alice", name="Alice"):
        return store.create_if_absent(login, "$2b$04$not-a-real-hash", name)

    return _make_user


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        SECRET_KEY=TEST_SECRET,
        BCRYPT_ROUNDS=4,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register(client):
    def _register(login="alice", password="secret1", name="Alice", bio=""):
        r = client.post(
            f"{API}/register",
            json={"login": login, "password": password, "name": name, "bio": bio},
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _register


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}

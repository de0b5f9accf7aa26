import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from notes_api.main import app, get_services
from notes_core.services import Services
from notes_database.db import make_session_factory
from notes_database.models import Base
from notes_database.store import KeyValueStore

@pytest.fixture
def engine():
    """Fixture for a fresh in-memory SQLite engine per test."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def store(engine):
    """Key-value store over the test engine."""
    return KeyValueStore(make_session_factory(engine))

class FakeClock:
    """Millisecond clock that only moves when told to."""
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms=1):
        self.now += ms

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def services(store, clock):
    """Services wired around the test store, session already restored."""
    services = Services(store, clock=clock)
    services.sessions.restore()
    return services

@pytest.fixture
def signed_in(services, user_data):
    """Services with the default user signed up and signed in."""
    services.sessions.sign_up(user_data["username"], user_data["password"])
    return services

@pytest.fixture
def client(services):
    """Fixture for FastAPI TestClient with the test services injected."""
    app.dependency_overrides[get_services] = lambda: services

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()

@pytest.fixture
def user_data():
    """Returns default user data for registration."""
    return {
        "username": "alice",
        "password": "alicepassword123"
    }

@pytest.fixture
def second_user_data():
    """Returns a second user's data."""
    return {
        "username": "bob",
        "password": "bobpassword456"
    }

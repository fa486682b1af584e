"""Test configuration and shared fixtures for ContactDrop service tests.

Wires the real store, rate limiter and session service against a per-test
temporary sessions directory.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from contactdrop_service.config import ContactDropSettings
from contactdrop_service.services.rate_limiter import SlidingWindowRateLimiter
from contactdrop_service.services.session_service import SessionService
from contactdrop_service.storage.session_store import SessionStore


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_settings(sessions_dir, **overrides) -> ContactDropSettings:
    defaults = {
        "sessions_dir": str(sessions_dir),
        "port": 3000,
        "rate_window_ms": 60_000,
        "rate_max": 20,
        "contact_limit": 1000,
        "max_body_bytes": 50 * 1024,
    }
    defaults.update(overrides)
    return ContactDropSettings(**defaults)


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

@pytest.fixture
def sessions_dir(tmp_path):
    return tmp_path / "sessions"


@pytest.fixture
def settings(sessions_dir):
    return _make_settings(sessions_dir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(settings):
    return SessionStore(settings.sessions_path)


@pytest.fixture
def rate_limiter(settings, clock):
    return SlidingWindowRateLimiter(
        window_ms=settings.rate_window_ms,
        max_requests=settings.rate_max,
        clock=clock,
    )


@pytest.fixture
def session_service(store, settings, clock):
    return SessionService(store, contact_limit=settings.contact_limit, clock=clock)


# ---------------------------------------------------------------------------
# App / client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(settings, store, rate_limiter, session_service):
    """FastAPI app wired to temp-dir components (lifespan is not run)."""
    from contactdrop_service.main import app

    app.state.settings = settings
    app.state.session_store = store
    app.state.rate_limiter = rate_limiter
    app.state.session_service = session_service
    yield app


@pytest_asyncio.fixture
async def app_no_service(settings, rate_limiter):
    from contactdrop_service.main import app

    app.state.settings = settings
    app.state.session_store = None
    app.state.rate_limiter = rate_limiter
    app.state.session_service = None
    yield app


@pytest_asyncio.fixture
async def client(app):
    """AsyncClient hitting the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def client_no_service(app_no_service):
    transport = ASGITransport(app=app_no_service)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def session_id(client):
    """Id of a freshly created session."""
    resp = await client.post("/api/create", json={"sessionName": "Meetup", "minutes": 30})
    assert resp.status_code == 200
    return resp.json()["id"]

"""
Global test configuration and fixtures for SubTrack

Shared fixtures: settings overrides, a temporary SQLite key-value store, a
mock upstream origin, ASGI test clients, and a virtual-time scheduler for the
client sync controller.
"""

import tempfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from subtrack.core.config import settings
from subtrack.core.security import encode_secret
from subtrack.core.utils.kv_store import SQLKeyValueStore, get_store
from subtrack.main import app
from subtrack.web.proxy import StaticContentProxy, get_proxy

TEST_PASSWORD = "correct-horse-battery"


# ============================================================================
# Test Environment Setup
# ============================================================================

@pytest.fixture(scope="function")
def test_settings():
    """Override settings for testing"""
    test_overrides = {
        "password": TEST_PASSWORD,
        "upstream_origin": "https://static.example.test",
        "upstream_path": "/subtrack",
        "data_key": "user_data",
    }
    original_values = {key: getattr(settings, key) for key in test_overrides}

    for key, value in test_overrides.items():
        setattr(settings, key, value)

    yield settings

    for key, value in original_values.items():
        setattr(settings, key, value)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def kv_store():
    """Key-value store on a throwaway SQLite file"""
    with tempfile.TemporaryDirectory() as temp_dir:
        db_path = Path(temp_dir) / "kv.db"
        engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})
        factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        yield SQLKeyValueStore(factory)
        engine.dispose()


# ============================================================================
# Upstream Origin
# ============================================================================

class FakeUpstream:
    """Scripted static origin for httpx.MockTransport; records every request."""

    def __init__(self):
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []
        self.default_status = 404

    def respond(self, path: str, status_code: int = 200, content: bytes = b"", headers: Optional[dict] = None):
        self.routes[path] = lambda request: httpx.Response(status_code, content=content, headers=headers or {})

    def fail(self, path: str, error: Exception):
        def _raise(request: httpx.Request) -> httpx.Response:
            raise error
        self.routes[path] = _raise

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(self.default_status, content=b"missing")
        return handler(request)

    @property
    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture(scope="function")
def upstream():
    return FakeUpstream()


@pytest.fixture(scope="function")
def proxy(test_settings, upstream):
    return StaticContentProxy(test_settings, httpx.AsyncClient(transport=httpx.MockTransport(upstream)))


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def client(test_settings, kv_store, proxy):
    """FastAPI test client over HTTPS so Secure cookies round-trip"""
    app.dependency_overrides[get_store] = lambda: kv_store
    app.dependency_overrides[get_proxy] = lambda: proxy

    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def authed_client(client, test_settings):
    """Test client already holding a valid session cookie"""
    client.cookies.set(test_settings.cookie_name, encode_secret(TEST_PASSWORD))
    return client


# ============================================================================
# Virtual Time
# ============================================================================

class _VirtualTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """Scheduler whose clock only moves when a test calls ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._timers: List[_VirtualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _VirtualTimer:
        timer = _VirtualTimer(self.now + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.now = timer.when
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self.now = target


@pytest.fixture(scope="function")
def virtual_scheduler():
    return VirtualScheduler()


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_collection_modifyitems(config, items):
    """Add markers based on file location"""
    for item in items:
        path = str(item.fspath)
        if "security" in path:
            item.add_marker(pytest.mark.security)
        if "integration" in path:
            item.add_marker(pytest.mark.integration)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def sample_dataset():
    return {
        "jobs": [
            {
                "id": "k3j9x0a1b",
                "date": "2024-09-12",
                "className": "Algebra I",
                "teacher": "Ms. Rivera",
                "school": "Munster High",
                "town": "Munster",
                "dayType": 1,
                "fromTime": "07:45",
                "toTime": "14:50",
                "hours": 7.08,
            },
            {
                "id": "p0q8w2e7r",
                "date": "2024-09-13",
                "className": "Art",
                "teacher": "Mr. Chen",
                "school": "Eads Elementary",
                "town": "Highland",
                "dayType": 0.5,
                "fromTime": "08:00",
                "toTime": "11:30",
                "hours": 3.5,
            },
        ],
        "payments": [
            {"id": "m1n2b3v4c", "date": "2024-10-01", "town": "Munster", "amount": 412.5},
        ],
    }

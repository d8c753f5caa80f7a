"""Pytest configuration and shared fixtures."""

import os
import sys
from pathlib import Path

import httpx
import pytest

# Ensure source tree is importable without editable install.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


def pytest_configure(config):
    """Configure pytest markers and environment for tests."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")

    # These MUST override any developer shell/.env values to keep the test run deterministic.
    os.environ["ENVIRONMENT"] = "test"
    os.environ["BACKEND_PROVIDER"] = "fake"
    os.environ["LOG_LEVEL"] = "WARNING"
    os.environ["CONVERSATION_TTL_SECONDS"] = "0"
    os.environ["METRICS_PORT"] = "0"
    for key in ("NOBL9_CLIENT_ID", "NOBL9_CLIENT_SECRET", "NOBL9_ORGANIZATION", "NOBL9_URL"):
        os.environ.pop(key, None)


@pytest.fixture(autouse=True)
def fresh_settings():
    """Rebuild settings for every test so monkeypatched env vars take effect."""
    from projectbot.config import reset_settings_cache

    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep ~/.nobl9/config.json lookups inside a temp directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def block_external_http(monkeypatch):
    """Fail the fast lane if code tries to hit the public internet.

    Allowlist only localhost/loopback hosts; unit tests route the Nobl9 client
    through ``httpx.MockTransport`` on ``http://localhost``.
    """

    allowed_hosts = {"test", "testserver", "localhost", "127.0.0.1", "0.0.0.0"}

    def _sync_guard(self, method, url, *args, **kwargs):  # type: ignore[no-untyped-def]
        u = self._merge_url(url)
        if u.scheme in {"http", "https"} and (u.host or "") not in allowed_hosts:
            raise RuntimeError(f"External HTTP blocked in tests: {u!s}")
        return _orig_sync_request(self, method, url, *args, **kwargs)

    _orig_sync_request = httpx.Client.request
    monkeypatch.setattr(httpx.Client, "request", _sync_guard, raising=True)

    yield


@pytest.fixture
def backend():
    """In-memory backend seeded with one project and two users."""
    from projectbot.backend import InMemoryBackend, Project

    return InMemoryBackend(
        projects=[Project(name="taken-name", description="existing", owner="alice@example.com")],
        users=["user@example.com", "bob@example.com"],
    )


@pytest.fixture
def sleeps() -> list[float]:
    """Collects the delays the retry loop asked for."""
    return []


@pytest.fixture
def orchestrator(backend, sleeps):
    """Orchestrator over the in-memory backend that never really sleeps."""
    from projectbot.conversation import Orchestrator

    return Orchestrator(backend, sleep=sleeps.append)

"""
Shared pytest fixtures and configuration.
"""

import os
import tempfile

# Point the data dir (timeline DB, settings.json) at a scratch directory before
# aura.config is imported anywhere.
os.environ.setdefault("CAE_DATA_DIR", tempfile.mkdtemp(prefix="cae-tests-"))

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import aura.settings as settings_mod
from aura.api.app import create_app


@pytest.fixture()
def tmp_settings_file(tmp_path, monkeypatch):
    """
    Redirect the settings store to a fresh temp file for each test.
    Also resets the in-memory cache so each test starts clean.
    """
    fake_file = tmp_path / "settings.json"
    monkeypatch.setattr(settings_mod, "_FILE", fake_file)
    monkeypatch.setattr(settings_mod, "_current", {})
    yield fake_file
    monkeypatch.setattr(settings_mod, "_current", {})


@pytest.fixture()
def app():
    """Create a fresh app instance per test."""
    return create_app()


@pytest_asyncio.fixture()
async def client(app, tmp_settings_file):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac

# tests/conftest.py
import os

# Set up test environment variables BEFORE any other imports
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("TENANT_ID", "1")
os.environ.setdefault("TELEMETRY_ENABLED", "true")

from datetime import date
from unittest.mock import MagicMock

import httpx
import pytest
import pytest_asyncio

from assistant_orb.clients.api_client import AssistantApiClient
from assistant_orb.core.config import Settings
from assistant_orb.domains.chat.shell import PresentationShell
from tests.fake_backend import create_fake_backend

TODAY = date(2025, 3, 7)


@pytest.fixture
def test_settings():
    """Settings pointing at the fake backend, without reading a .env file."""
    return Settings(
        _env_file=None,
        environment="testing",
        api_base_url="http://testserver",
        tenant_id="1",
        user_id="42",
        read_max_retries=2,
        retry_backoff_seconds=0,
        telemetry_enabled=True,
    )


@pytest.fixture
def backend():
    """Fake backend app and its inspectable state."""
    return create_fake_backend()


@pytest.fixture
def backend_state(backend):
    return backend[1]


@pytest_asyncio.fixture
async def api_client(test_settings, backend):
    """API client talking to the fake backend in-process."""
    app, _ = backend
    client = AssistantApiClient(test_settings, transport=httpx.ASGITransport(app=app))
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def shell(test_settings, api_client):
    """Widget session on the Deals page, with a fixed calendar date."""
    session = PresentationShell(test_settings, api=api_client, location="/deals", today=lambda: TODAY)
    yield session
    await session.tracker.drain()


@pytest.fixture
def mock_api():
    """Spec'd client mock; async methods are AsyncMocks."""
    api = MagicMock(spec=AssistantApiClient)
    api.user_agent = "Assistant Orb/1.0.0"
    api.list_conversations.return_value = []
    api.list_messages.return_value = []
    api.list_recent_events.return_value = []
    return api

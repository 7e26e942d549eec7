"""Pytest configuration and fixtures for mcp-playwright-server tests."""

# Standard library
import os
import sys
from unittest.mock import MagicMock

# Third-party
import pytest
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Add the repository root and src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from server.config import GatewaySettings  # noqa: E402
from server.dispatcher import Dispatcher  # noqa: E402
from server.session import ExecutionContext  # noqa: E402
from server.tools import create_tool_registry  # noqa: E402
from tests._helpers import make_fake_playwright  # noqa: E402

GLOBAL_ENV_VARS = (
    "PLAYWRIGHT_HEADLESS",
    "PLAYWRIGHT_PROXY",
    "PLAYWRIGHT_DOWNLOADS_DIR",
    "PLAYWRIGHT_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_global_env(monkeypatch):
    """Keep the developer's shell and .env from leaking global settings into tests."""
    for name in GLOBAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_playwright():
    return make_fake_playwright()


@pytest.fixture
def settings(tmp_path):
    return GatewaySettings(downloads_dir=tmp_path / "downloads")


@pytest.fixture
def http_client():
    """Mock ``requests.Session`` returned by the HTTP client factory."""
    client = MagicMock()
    response = MagicMock()
    response.status_code = 200
    response.text = '{"ok": true}'
    client.request.return_value = response
    return client


@pytest.fixture
def context(settings, fake_playwright, http_client):
    return ExecutionContext(
        settings,
        playwright_factory=fake_playwright.factory,
        http_client_factory=MagicMock(return_value=http_client),
    )


@pytest.fixture
def dispatcher(context):
    return Dispatcher(create_tool_registry(), context)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


# Pytest collection modifiers
def pytest_collection_modifyitems(config, items):
    """Mark everything that does not start a real browser as a unit test."""
    for item in items:
        if item.get_closest_marker("integration") is None:
            item.add_marker(pytest.mark.unit)
